import re

import pytest
from bson import ObjectId

from mongo_repository import F, MongoFilterTranslator, and_, fields, not_, or_, project
from mongo_repository.errors import InvalidArgumentError, UntranslatableExpressionError
from mongo_repository.expressions import And, Comparison, MatchAll, Or
from mongo_repository.translation import translate_projection

from sample_documents import Account, Person


@pytest.fixture()
def translator():
    return MongoFilterTranslator()


def test_equality_uses_plain_field_match(translator):
    f = fields(Person)
    assert translator.translate(f.name == "a") == {"name": "a"}


def test_comparisons_map_to_operators(translator):
    f = fields(Person)
    assert translator.translate(f.age > 3) == {"age": {"$gt": 3}}
    assert translator.translate(f.age >= 3) == {"age": {"$gte": 3}}
    assert translator.translate(f.age < 3) == {"age": {"$lt": 3}}
    assert translator.translate(f.age <= 3) == {"age": {"$lte": 3}}
    assert translator.translate(f.age != 3) == {"age": {"$ne": 3}}


def test_equality_with_mapping_value_is_explicit(translator):
    assert translator.translate(F("meta") == {"a": 1}) == {"meta": {"$eq": {"a": 1}}}


def test_membership(translator):
    f = fields(Person)
    assert translator.translate(f.name.is_in(["a", "b"])) == {"name": {"$in": ["a", "b"]}}
    assert translator.translate(f.name.not_in(("c",))) == {"name": {"$nin": ["c"]}}


def test_string_predicates_escape_literals(translator):
    f = fields(Person)
    assert translator.translate(f.name.startswith("a.b")) == {"name": {"$regex": "^" + re.escape("a.b")}}
    assert translator.translate(f.name.contains("x+y")) == {"name": {"$regex": re.escape("x+y")}}
    assert translator.translate(f.name.matches("^A", "i")) == {"name": {"$regex": "^A", "$options": "i"}}
    assert translator.translate(f.name.startswith("")) == {"name": {"$regex": "^"}}


def test_boolean_composition(translator):
    f = fields(Person)
    predicate = (f.name == "a") & (f.age > 1) & (f.tags.exists())
    assert isinstance(predicate, And)
    assert len(predicate.operands) == 3
    assert translator.translate(predicate) == {
        "$and": [{"name": "a"}, {"age": {"$gt": 1}}, {"tags": {"$exists": True}}]
    }
    assert translator.translate((f.name == "a") | (f.name == "b")) == {"$or": [{"name": "a"}, {"name": "b"}]}
    assert translator.translate(~(f.name == "a")) == {"$nor": [{"name": "a"}]}


def test_helpers_simplify(translator):
    single = F("a") == 1
    assert and_(single) == single
    assert isinstance(and_(), MatchAll)
    assert translator.translate(and_()) == {}
    assert isinstance(or_(single, MatchAll()), MatchAll)
    assert isinstance(or_(single, F("b") == 2, F("c") == 3), Or)
    assert translator.translate(not_(single)) == {"$nor": [{"a": 1}]}
    with pytest.raises(InvalidArgumentError):
        or_()


def test_nested_paths():
    assert (F("address").city == "Berlin") == Comparison("eq", "address.city", "Berlin")
    assert (F("items")[0] == "x") == Comparison("eq", "items.0", "x")


def test_model_fields_are_checked():
    f = fields(Person)
    assert f.id.path == "_id"
    assert f["name"].path == "name"
    with pytest.raises(InvalidArgumentError):
        f.nickname


def test_predicates_refuse_truthiness():
    with pytest.raises(TypeError):
        bool(F("a") == 1)


def test_id_values_go_through_converter():
    oid = ObjectId()
    translator = MongoFilterTranslator(id_converter=lambda key: ObjectId(key))
    f = fields(Account)
    assert translator.translate(f.id == str(oid)) == {"_id": oid}
    assert translator.translate(f.id.is_in([str(oid)])) == {"_id": {"$in": [oid]}}
    assert translator.translate(f.owner == str(oid)) == {"owner": str(oid)}


def test_null_id_values_skip_converter():
    translator = MongoFilterTranslator(id_converter=lambda key: ObjectId(key))
    f = fields(Account)
    assert translator.translate(f.id == None) == {"_id": None}  # noqa: E711
    assert translator.translate(F("_id").is_in([None])) == {"_id": {"$in": [None]}}


def test_mappings_pass_through_and_none_matches_all(translator):
    raw = {"name": {"$regex": "^a"}}
    assert translator.translate(raw) == raw
    assert translator.translate(None) == {}


def test_untranslatable_predicates(translator):
    with pytest.raises(UntranslatableExpressionError):
        translator.translate(lambda person: person.name == "a")
    with pytest.raises(UntranslatableExpressionError):
        translator.translate(Comparison("between", "age", (1, 2)))


def test_projection_translation():
    f = fields(Person)
    assert translate_projection(project(f.name, "age")) == {"name": 1, "age": 1}
    assert translate_projection(project(f.name, include_id=False)) == {"name": 1, "_id": 0}
    with pytest.raises(InvalidArgumentError):
        project()
