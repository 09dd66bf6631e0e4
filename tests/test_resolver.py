import random

from expense_import.models import Category
from expense_import.resolver import CATEGORY_PALETTE, FALLBACK_CATEGORY_NAME, CategoryResolver

EXISTING = [
    Category(id="c-food", name="Food", color="#EF4444"),
    Category(id="c-health", name="Health", color="#10B981"),
    Category(id="c-travel", name="Travel", color="#3B82F6"),
]


def _counter_ids():
    n = iter(range(1, 1000))
    return lambda: f"new-{next(n)}"


def test_oracle_mapping_to_existing_id_wins():
    r = CategoryResolver(EXISTING, {"anv med": "c-health"})
    res = r.resolve("anv med")
    assert res.category_id == "c-health"
    assert res.is_new is False
    assert res.original_token == "anv med"
    assert r.new_categories == []


def test_oracle_lookup_checks_trimmed_then_lowercased_keys():
    r = CategoryResolver(EXISTING, {"swiggy": "c-food", "Uber Ride": "c-travel"})
    assert r.resolve("SWIGGY").category_id == "c-food"
    assert r.resolve("  Uber Ride  ").category_id == "c-travel"


def test_oracle_id_not_in_existing_set_is_ignored():
    r = CategoryResolver(EXISTING, {"Gym": "c-does-not-exist"}, id_factory=_counter_ids())
    res = r.resolve("Gym")
    assert res.is_new is True
    assert res.category_id == "new-1"
    assert [c.name for c in r.new_categories] == ["Gym"]


def test_new_sentinel_falls_back_to_exact_name_match():
    r = CategoryResolver(EXISTING, {"food": "NEW"})
    res = r.resolve("food")
    assert res.category_id == "c-food"
    assert res.is_new is False
    assert res.original_token is None


def test_exact_name_match_is_case_insensitive():
    r = CategoryResolver(EXISTING, {})
    assert r.resolve("TRAVEL").category_id == "c-travel"


def test_new_category_is_minted_once_per_lowercased_token():
    session: dict[str, Category] = {}
    r = CategoryResolver(EXISTING, {}, session, rng=random.Random(7), id_factory=_counter_ids())

    first = r.resolve("kirana store")
    again = r.resolve("KIRANA STORE")
    padded = r.resolve("  Kirana Store ")

    assert first.is_new and again.is_new and padded.is_new
    assert first.category_id == again.category_id == padded.category_id == "new-1"
    assert list(session) == ["kirana store"]
    cat = session["kirana store"]
    assert cat.name == "Kirana Store"
    assert cat.is_custom is True
    assert cat.color in CATEGORY_PALETTE


def test_session_map_is_shared_by_reference():
    session: dict[str, Category] = {}
    pre = Category(id="made-earlier", name="Coffee", color="#64748B", is_custom=True)
    session["coffee"] = pre
    r = CategoryResolver(EXISTING, {}, session)
    res = r.resolve("Coffee")
    assert res.category_id == "made-earlier"
    assert res.is_new is True


def test_empty_name_falls_back_to_imported_misc():
    r = CategoryResolver(EXISTING, {}, id_factory=_counter_ids())
    r.resolve("   ")
    assert r.new_categories[0].name == FALLBACK_CATEGORY_NAME


def test_every_resolution_lands_in_existing_or_new():
    r = CategoryResolver(EXISTING, {"a1": "c-food", "b2": "NEW", "c3": "bogus"})
    ids = {r.resolve(t).category_id for t in ["a1", "b2", "c3", "Health", "misc", "MISC"]}
    known = {c.id for c in EXISTING} | {c.id for c in r.new_categories}
    assert ids <= known
    assert len(r.new_categories) == 3  # b2, c3, misc


def test_existing_name_lookup():
    r = CategoryResolver(EXISTING, {})
    assert r.existing_name("c-food") == "Food"
    assert r.existing_name("nope") is None
