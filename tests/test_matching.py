import unittest
import uuid
from types import SimpleNamespace

from dakino_backend.models import Product, Store
from dakino_backend.services.matching import (
    MatchConfidence,
    ProductMatch,
    match_product,
    match_store,
)


def _product(name: str) -> Product:
    return Product(id=uuid.uuid4(), name=name)


class MatchProductTests(unittest.TestCase):
    def test_exact_match_wins_over_partial(self):
        entera = _product("Leche Entera")
        leche = _product("Leche")

        result = match_product("leche", [entera, leche])

        self.assertIs(result.product, leche)
        self.assertEqual(result.confidence, MatchConfidence.EXACT)

    def test_first_exact_match_in_catalog_order_wins(self):
        first = _product("Leche")
        second = _product("LECHE!")

        result = match_product("Léche", [first, second])

        self.assertIs(result.product, first)
        self.assertEqual(result.confidence, MatchConfidence.EXACT)

    def test_partial_match_above_threshold(self):
        entera = _product("Leche Entera")

        result = match_product("LECHE ENTERA 1L", [entera])

        self.assertIs(result.product, entera)
        self.assertEqual(result.confidence, MatchConfidence.PARTIAL)

    def test_score_of_exactly_accept_threshold_is_rejected(self):
        # "pan" inside "panes" scores 3/5.
        result = match_product("Pan", [_product("Panes")])

        self.assertIsNone(result.product)
        self.assertEqual(result.confidence, MatchConfidence.NONE)

    def test_score_just_above_accept_threshold_is_partial(self):
        # "fresa" inside "fresas x" scores 5/8.
        fresas = _product("Fresas X")

        result = match_product("fresa", [fresas])

        self.assertIs(result.product, fresas)
        self.assertEqual(result.confidence, MatchConfidence.PARTIAL)

    def test_candidate_between_floor_and_threshold_is_discarded(self):
        # 5/12 clears the candidate floor but never the accept threshold.
        result = match_product("leche", [_product("Leche Entera")])

        self.assertEqual(result, ProductMatch.no_match())

    def test_better_candidate_overtakes(self):
        cherry = _product("Tomates Cherry")
        tomates = _product("Tomates")

        result = match_product("tomate", [cherry, tomates])

        self.assertIs(result.product, tomates)
        self.assertEqual(result.confidence, MatchConfidence.PARTIAL)

    def test_ties_keep_the_earlier_product(self):
        pane = _product("Pane")
        pana = _product("Pana")

        result = match_product("pan", [pane, pana])

        self.assertIs(result.product, pane)

    def test_empty_catalog_matches_nothing(self):
        self.assertEqual(match_product("Leche", []), ProductMatch.no_match())

    def test_empty_name_matches_nothing_against_real_names(self):
        result = match_product("", [_product("Leche"), _product("Pan")])

        self.assertIsNone(result.product)
        self.assertEqual(result.confidence, MatchConfidence.NONE)

    def test_empty_name_equals_product_that_normalizes_to_empty(self):
        symbols = _product("!!!")

        result = match_product("???", [_product("Leche"), symbols])

        self.assertIs(result.product, symbols)
        self.assertEqual(result.confidence, MatchConfidence.EXACT)

    def test_thresholds_can_be_overridden(self):
        entera = _product("Leche Entera")

        result = match_product(
            "leche", [entera], candidate_floor=0.2, accept_threshold=0.3
        )

        self.assertIs(result.product, entera)
        self.assertEqual(result.confidence, MatchConfidence.PARTIAL)

    def test_accepts_any_named_record(self):
        record = SimpleNamespace(id="p1", name="Aceite de Oliva")

        result = match_product("aceite de oliva", [record])

        self.assertIs(result.product, record)

    def test_confidence_none_iff_no_product(self):
        catalog = [_product("Leche"), _product("Pan de molde"), _product("Huevos")]
        for raw in ["leche", "pan molde", "huevos l", "atun", "", "pan"]:
            with self.subTest(raw=raw):
                result = match_product(raw, catalog)
                self.assertEqual(
                    result.confidence is MatchConfidence.NONE,
                    result.product is None,
                )


class MatchStoreTests(unittest.TestCase):
    def test_ticket_name_containing_store_name(self):
        mercadona = Store(id=uuid.uuid4(), name="Mercadona")

        self.assertIs(
            match_store("MERCADONA S.A.", [Store(name="Lidl"), mercadona]),
            mercadona,
        )

    def test_store_name_containing_ticket_name(self):
        carrefour = Store(id=uuid.uuid4(), name="Carrefour Express")

        self.assertIs(match_store("carrefour", [carrefour]), carrefour)

    def test_missing_store_name_matches_nothing(self):
        stores = [Store(name="Lidl")]

        self.assertIsNone(match_store(None, stores))
        self.assertIsNone(match_store("", stores))

    def test_unknown_store_matches_nothing(self):
        self.assertIsNone(match_store("Aldi", [Store(name="Lidl")]))

    def test_blank_store_names_are_skipped(self):
        lidl = Store(name="Lidl")

        self.assertIs(match_store("lidl", [Store(name=""), lidl]), lidl)


if __name__ == "__main__":
    unittest.main()
