import pytest

from herbaltrace.errors import NotFound, StoreError
from herbaltrace.qr import token_codec
from herbaltrace.services.traceability.traceability_services import TraceabilityService


class FlakyStore:
    """Delegates to a real store but fails reads of one table."""

    def __init__(self, store, failing_table):
        self._store = store
        self._failing = failing_table

    def select(self, table, *args, **kwargs):
        if table == self._failing:
            raise StoreError(f"Failed to fetch {table}")
        return self._store.select(table, *args, **kwargs)

    def select_one(self, table, filters, **kwargs):
        rows = self.select(table, filters, limit=1, **kwargs)
        return rows[0] if rows else None

    def __getattr__(self, name):
        return getattr(self._store, name)


class TestResolve:
    """Resolving scanned tokens"""

    def test_unknown_token(self, store, seeded):
        token = token_codec.encode({"type": "product", "productId": "PROD_nope", "batchIds": ["B1"]})
        with pytest.raises(NotFound) as exc:
            TraceabilityService(store).resolve(token)
        assert exc.value.message == "This QR code is not registered in our system."

    def test_malformed_token_reads_as_not_found(self, store, seeded):
        with pytest.raises(NotFound):
            TraceabilityService(store).resolve("definitely-not-a-token")

    def test_product_and_batches(self, store, seeded, product_factory):
        product = product_factory(["B2", "B1"])
        trace = TraceabilityService(store).resolve(product["qr_code"])

        assert trace.product["id"] == product["id"]
        assert [b["id"] for b in trace.batches] == ["B2", "B1"]
        assert trace.batches[1]["herbs"]["local_name"] == "Ashwagandha"
        assert trace.batches[0]["aggregator"]["id"] == seeded["aggregator"]["id"]
        assert trace.complete

    def test_manufacturer_expanded(self, store, seeded, product_factory):
        product = product_factory(["B1"], manufacturer_id=seeded["factory"]["id"])
        trace = TraceabilityService(store).resolve(product["qr_code"])

        manufacturer = trace.product["manufacturer"]
        assert manufacturer["id"] == seeded["factory"]["id"]
        assert manufacturer["full_name"] == "Test Factory"
        assert "email" not in manufacturer
        assert "phone" not in manufacturer

    def test_unknown_manufacturer(self, store, seeded, product_factory):
        product = product_factory(["B1"], manufacturer_id="gone")
        trace = TraceabilityService(store).resolve(product["qr_code"])
        assert trace.product["manufacturer"] is None

    def test_embedded_keys(self, store, seeded, product_factory):
        product = product_factory(["B1"], manufacturer_id=seeded["factory"]["id"])
        trace = TraceabilityService(store).resolve(product["qr_code"]).to_dict()

        assert set(trace) == {"product", "batches", "collections", "qualityTests", "processingSteps",
                              "gaps", "complete"}
        assert "manufacturer" in trace["product"]
        assert {"herbs", "aggregator"} <= set(trace["batches"][0])
        assert {"collectors", "herbs"} <= set(trace["collections"][0])
        assert "profiles" in trace["collections"][0]["collectors"]
        assert "lab" in trace["qualityTests"][0]
        assert "processor" in trace["processingSteps"][0]

    def test_token_with_whitespace(self, store, seeded, product_factory):
        product = product_factory(["B1"])
        trace = TraceabilityService(store).resolve(f"  {product['qr_code']}\n")
        assert trace.product["id"] == product["id"]

    def test_tests_only_for_listed_batches(self, store, seeded, product_factory):
        store.insert("quality_tests", {"id": "T3", "batch_id": "B3", "lab_id": seeded["lab"]["id"],
                                       "test_status": "pending", "test_date": "2024-03-01T00:00:00+00:00"})
        product = product_factory(["B1"])
        trace = TraceabilityService(store).resolve(product["qr_code"])

        assert [t["id"] for t in trace.qualityTests] == ["T1", "T2"]
        assert all(t["batch_id"] == "B1" for t in trace.qualityTests)
        assert trace.qualityTests[0]["badge"]["label"] == "PENDING"

    def test_processing_steps_oldest_first(self, store, seeded, product_factory):
        product = product_factory(["B1", "B2"])
        trace = TraceabilityService(store).resolve(product["qr_code"])
        assert [s["id"] for s in trace.processingSteps] == ["P1", "P2"]
        assert trace.processingSteps[0]["processor"]["id"] == seeded["factory"]["id"]

    def test_product_without_batches(self, store, seeded, product_factory):
        product = product_factory([])
        trace = TraceabilityService(store).resolve(product["qr_code"])
        assert trace.batches == []
        assert trace.collections == [] and trace.qualityTests == [] and trace.processingSteps == []


class TestCollections:
    def test_matched_by_herb(self, store, seeded, product_factory):
        product = product_factory(["B1"])
        trace = TraceabilityService(store).resolve(product["qr_code"])
        # newest first
        assert [e["id"] for e in trace.collections] == ["E2", "E1"]

    def test_explicit_event_links(self, store, seeded, product_factory):
        product = product_factory(["B1", "B2"])
        trace = TraceabilityService(store).resolve(product["qr_code"])
        # B2 links E3 only, so E4 (same herb) stays out
        assert [e["id"] for e in trace.collections] == ["E3", "E2", "E1"]

    def test_public_profile_only(self, store, seeded, product_factory):
        product = product_factory(["B1"])
        trace = TraceabilityService(store).resolve(product["qr_code"])
        profile = trace.collections[0]["collectors"]["profiles"]
        assert profile["full_name"] == "Test Farmer"
        assert "aadhaar_id" not in profile
        assert "email" not in profile
        assert "phone" not in profile

    def test_herb_badge(self, store, seeded, product_factory):
        product = product_factory(["B2"])
        trace = TraceabilityService(store).resolve(product["qr_code"])
        assert trace.collections[0]["herbs"]["badge"]["color"] == "yellow"


class TestPartialTraces:
    """A failed branch becomes a gap instead of failing the scan"""

    def test_failed_branch(self, store, seeded, product_factory):
        product = product_factory(["B1"])
        trace = TraceabilityService(FlakyStore(store, "processing_steps")).resolve(product["qr_code"])

        assert not trace.complete
        assert trace.processingSteps == []
        assert [t["id"] for t in trace.qualityTests] == ["T1", "T2"]
        gap = trace.gap_for("processingSteps")
        assert gap.kind == "store_error"

    def test_gaps_in_branch_order(self, store, seeded, product_factory):
        class TwoFailures(FlakyStore):
            def select(self, table, *args, **kwargs):
                if table in ("processing_steps", "collection_events"):
                    raise StoreError("down")
                return self._store.select(table, *args, **kwargs)

        product = product_factory(["B1"])
        trace = TraceabilityService(TwoFailures(store, None), max_workers=1).resolve(product["qr_code"])
        assert [g.section for g in trace.gaps] == ["collections", "processingSteps"]

        out = trace.to_dict()
        assert out["complete"] is False
        assert out["gaps"][0] == {"section": "collections", "kind": "store_error", "message": "down"}

    def test_product_lookup_failure_propagates(self, store, seeded, product_factory):
        product = product_factory(["B1"])
        with pytest.raises(StoreError):
            TraceabilityService(FlakyStore(store, "products")).resolve(product["qr_code"])
