import uuid

from bson import ObjectId

from mongo_repository import Document, MongoRepository
from mongo_repository.models import generate_key
from sample_documents import Account, Counter, Person


class UserProfile(Document[uuid.UUID]):
    display_name: str


class Untyped(Document):
    label: str = ""


def test_key_type_follows_generic_parameter():
    assert Person.key_type() is str
    assert Account.key_type() is ObjectId
    assert Counter.key_type() is int
    assert UserProfile.key_type() is uuid.UUID
    assert Untyped.key_type() is object


def test_collection_names():
    assert UserProfile.get_collection_name() == "user_profile"
    assert Counter.get_collection_name() == "counters"


def test_to_mongo_uses_alias_and_drops_missing_key():
    assert Person(name="a").to_mongo() == {"name": "a", "age": 0, "tags": []}
    assert Person(id="1", name="a").to_mongo()["_id"] == "1"


def test_from_mongo_round_trips_alias():
    person = Person.from_mongo({"_id": "1", "name": "a", "age": 3, "tags": []})

    assert person.id == "1"
    assert Person.from_mongo(None) is None


def test_generate_key():
    assert isinstance(generate_key(str), str)
    assert isinstance(generate_key(uuid.UUID), uuid.UUID)
    assert isinstance(generate_key(ObjectId), ObjectId)
    assert generate_key(int) is None


def test_uuid_keys_accept_string_form():
    repo = MongoRepository(UserProfile, collection_name="profiles")
    key = uuid.uuid4()

    assert repo.to_native_id(str(key)) == key
    assert repo.to_native_id(key) == key
    assert repo.collection_name == "profiles"


def test_untyped_documents_pass_keys_through():
    repo = MongoRepository(Untyped)

    assert repo.to_native_id("anything") == "anything"
    assert repo.to_native_id(5) == 5
