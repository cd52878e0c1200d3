"""
Tests for catalog parsing and CatalogIndex lookups.
"""

import logging

from configurator.catalog import CatalogIndex, load_catalog, load_catalog_file


class TestCatalogIndex:
    def test_models_for_brand_keeps_catalog_order(self, catalog):
        assert [m.handle for m in catalog.models_for_brand("acme")] == ["m1", "m2"]

    def test_models_for_unknown_brand_is_empty(self, catalog):
        assert catalog.models_for_brand("nope") == []

    def test_variants_for_model_maps_roles(self, catalog):
        variants = catalog.variants_for_model("m1")
        assert list(variants) == ["ring-mount", "mag-ring"]
        assert variants["ring-mount"].id == "V1"
        assert variants["mag-ring"].price == 500

    def test_variants_for_unknown_model_is_empty(self, catalog):
        assert catalog.variants_for_model("missing") == {}
        assert catalog.variants_for_model("m1", brand_handle="globex") == {}

    def test_legacy_role_fields_are_folded(self, catalog):
        variants = catalog.variants_for_model("g1", "globex")
        assert variants["ring-mount"].id == "V4"
        assert variants["mag-ring"] is None

    def test_numeric_ids_become_strings(self, catalog):
        case = catalog.variants_for_model("p1")["phone-case"]
        assert case.id == "55101"
        assert catalog.variant("55101") is case

    def test_brands_filter_by_family(self, catalog):
        assert [b.handle for b in catalog.brands()] == ["acme", "globex", "pixel"]
        assert [b.handle for b in catalog.brands("phone")] == ["pixel"]

    def test_global_variant_lookup_and_roles(self, catalog):
        assert catalog.role_of("V1") == "ring-mount"
        assert catalog.role_of("A1") == "adapter"
        assert catalog.role_of("S1") is None
        assert catalog.variant("S1").price == 300
        assert catalog.variant("unknown") is None

    def test_standalone_items_keep_order(self, catalog):
        assert [i.block_id for i in catalog.standalone_items()] == ["cloth", "tripod"]
        assert catalog.standalone("tripod").available is False

    def test_image_object_is_reduced_to_src(self):
        index = load_catalog({
            "brands": [{"handle": "b", "name": "B"}],
            "models": [{
                "handle": "m", "name": "M", "brandHandle": "b",
                "variants": {"case": {"id": 1, "price": 10, "image": {"src": "https://x/a.jpg"}}},
            }],
        })
        assert index.variant("1").image == "https://x/a.jpg"
        assert index.variant("1").available is True


class TestLoadCatalog:
    def test_invalid_json_degrades_to_empty(self, caplog):
        with caplog.at_level(logging.ERROR):
            index = load_catalog("{not json")
        assert index.is_empty()
        assert index.brands() == []
        assert "not valid JSON" in caplog.text

    def test_non_object_degrades_to_empty(self):
        assert load_catalog([1, 2, 3]).is_empty()
        assert load_catalog(None).is_empty()

    def test_malformed_records_are_skipped(self, caplog):
        raw = {
            "brands": [{"handle": "ok", "name": "Ok"}, {"name": "missing handle"}],
            "models": [
                {"handle": "m", "name": "M", "brandHandle": "ok", "variants": {"r": {"id": "V", "price": -5}}},
                {"handle": "bad", "name": "Bad", "brandHandle": "ok", "variants": 5},
                {"handle": "bad2", "name": "Bad2", "brandHandle": "ok", "variants": [1]},
                {"handle": "m2", "name": "M2", "brandHandle": "ok", "variants": {"r": {"id": "W", "price": 5}}},
            ],
            "standalone": "not a list",
        }
        with caplog.at_level(logging.WARNING):
            index = load_catalog(raw)
        assert [b.handle for b in index.brands()] == ["ok"]
        assert [m.handle for m in index.models_for_brand("ok")] == ["m2"]
        assert index.standalone_items() == []
        assert "Skipping malformed brand" in caplog.text

    def test_missing_file_degrades_to_empty(self, tmp_path):
        assert load_catalog_file(tmp_path / "absent.json").is_empty()

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text('{"brands": [{"handle": "a", "name": "A"}]}', encoding="utf-8")
        index = load_catalog_file(path)
        assert [b.name for b in index.brands()] == ["A"]

    def test_empty_index(self):
        index = CatalogIndex.empty()
        assert index.models_for_brand("x") == []
        assert index.fixed_variants() == {}
