import mongomock
import pytest
from mongomock_motor import AsyncMongoMockClient

from mongo_repository import MongoRepository
from sample_documents import Account, Counter, Person


@pytest.fixture()
def mongo_db():
    return mongomock.MongoClient()["repository_tests"]


@pytest.fixture()
def people(mongo_db):
    return MongoRepository(Person, collection=mongo_db[Person.get_collection_name()])


@pytest.fixture()
def accounts(mongo_db):
    return MongoRepository(Account, collection=mongo_db[Account.get_collection_name()])


@pytest.fixture()
def counters(mongo_db):
    return MongoRepository(Counter, collection=mongo_db[Counter.get_collection_name()])


@pytest.fixture()
def async_db():
    return AsyncMongoMockClient()["repository_tests"]


@pytest.fixture()
def async_people(async_db):
    return MongoRepository(Person, async_collection=async_db[Person.get_collection_name()])


@pytest.fixture()
def async_accounts(async_db):
    return MongoRepository(Account, async_collection=async_db[Account.get_collection_name()])
