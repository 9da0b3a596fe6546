"""Round trips against a real MongoDB replica set.

Transactions need a replica set, so these only run when ``MONGO_TEST_URI``
points at one, e.g. ``mongodb://localhost:27017/?replicaSet=rs0``.
"""

import os
import uuid

import pytest
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import MongoClient

from mongo_repository import MongoRepository
from sample_documents import Person

MONGO_TEST_URI = os.getenv("MONGO_TEST_URI")

pytestmark = pytest.mark.skipif(not MONGO_TEST_URI, reason="MONGO_TEST_URI not set")


@pytest.fixture()
def db_name():
    return f"repository_it_{uuid.uuid4().hex[:8]}"


@pytest.fixture()
def sync_people(db_name):
    client = MongoClient(MONGO_TEST_URI)
    collection = client[db_name]["person"]
    collection.insert_one({"_id": "seed", "name": "seed"})
    yield MongoRepository(Person, collection=collection)
    client.drop_database(db_name)
    client.close()


def test_aborted_transaction_leaves_no_documents(sync_people):
    def body(session):
        sync_people.insert_one(Person(id="1", name="a"), session=session)
        sync_people.insert_one(Person(id="2", name="b"), session=session)
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        sync_people.with_transaction(body)

    assert sync_people.find_by_id("1") is None
    assert sync_people.find_by_id("2") is None


def test_committed_transaction_is_visible(sync_people):
    def body(session):
        sync_people.insert_one(Person(id="1", name="a"), session=session)
        return sync_people.count(session=session)

    assert sync_people.with_transaction(body) == 2
    assert sync_people.find_by_id("1").name == "a"


@pytest.mark.asyncio
async def test_aborted_async_transaction_leaves_no_documents(db_name):
    client = AsyncIOMotorClient(MONGO_TEST_URI)
    collection = client[db_name]["person"]
    await collection.insert_one({"_id": "seed", "name": "seed"})
    people = MongoRepository(Person, async_collection=collection)

    async def body(session):
        await people.insert_one_async(Person(id="1", name="a"), session=session)
        await people.insert_one_async(Person(id="2", name="b"), session=session)
        raise RuntimeError("abort")

    try:
        with pytest.raises(RuntimeError):
            await people.with_transaction_async(body)
        assert await people.find_by_id_async("1") is None
        assert await people.find_by_id_async("2") is None
    finally:
        await client.drop_database(db_name)
        client.close()
