import mongomock
import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from herbaltrace.models.auth.auth_models import PortalContext
from herbaltrace.row_store import RowStore

TEST_JWT_SECRET = "test-secret-key-for-testing-only-0123456789"


@pytest.fixture
def store():
    """Fresh mongomock-backed row store per test"""
    s = RowStore(mongomock.MongoClient().db)
    s.ensure_indexes()
    return s


@pytest.fixture
def app(store):
    """Create and configure a test Flask app instance"""
    flask_app = create_app(
        {
            "TESTING": True,
            "JWT_SECRET_KEY": TEST_JWT_SECRET,
            "USE_REMOTE_AUTH_API": False,
            "BCRYPT_LOG_ROUNDS": 4,
            "PUBLIC_BASE_URL": "",
        },
        row_store=store,
    )
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def make_profile(store, role, **extra):
    row = {
        "email": f"{role}-{len(store.select('profiles'))}@test.com",
        "full_name": f"Test {role.title()}",
        "role": role,
        "phone": "9999999999",
        "organization": f"{role} org",
        "location": "Pune",
    }
    row.update(extra)
    return store.insert("profiles", row)


def ctx_for(profile):
    return PortalContext(profile_id=profile["id"], role=profile["role"], profile=profile)


@pytest.fixture
def auth_headers(app):
    """Bearer headers for an existing profile row"""
    def _headers(profile):
        with app.app_context():
            token = create_access_token(identity=profile["id"], additional_claims={"role": profile["role"]})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def seeded(store):
    """
    A small supply chain:
      herb Ashwagandha <- two collection events by a farmer
      batches B1 (approved, herb ashwagandha), B2 (approved, herb tulsi, explicit event link)
      B3 pending lab approval
      lab tests on B1 only, factory steps on B1 (completed) and B2 (in progress)
    """
    farmer = make_profile(store, "farmer", aadhaar_id="1234-5678-9012", cooperative_group="Green Coop")
    aggregator = make_profile(store, "aggregator")
    lab = make_profile(store, "lab")
    factory = make_profile(store, "factory")
    admin = make_profile(store, "admin")

    ashwagandha = store.insert("herbs", {
        "id": "H1", "botanical_name": "Withania somnifera", "local_name": "Ashwagandha",
        "conservation_status": "common",
    })
    tulsi = store.insert("herbs", {
        "id": "H2", "botanical_name": "Ocimum tenuiflorum", "local_name": "Tulsi",
        "conservation_status": "vulnerable",
    })

    collector = store.insert("collectors", {
        "id": "C1", "profile_id": farmer["id"], "collector_type": "farmer",
        "verification_status": "verified",
    })
    ev1 = store.insert("collection_events", {
        "id": "E1", "collector_id": "C1", "herb_id": "H1", "quantity_kg": 12.5,
        "latitude": 18.52, "longitude": 73.85, "plant_part": "root", "harvest_season": "winter",
        "initial_condition": "fresh", "collection_timestamp": "2024-01-10T08:00:00+00:00",
    })
    ev2 = store.insert("collection_events", {
        "id": "E2", "collector_id": "C1", "herb_id": "H1", "quantity_kg": 7.0,
        "latitude": 18.50, "longitude": 73.80, "plant_part": "root", "harvest_season": "winter",
        "initial_condition": "sun_dried", "collection_timestamp": "2024-01-12T08:00:00+00:00",
    })
    ev3 = store.insert("collection_events", {
        "id": "E3", "collector_id": "C1", "herb_id": "H2", "quantity_kg": 3.0,
        "latitude": 18.40, "longitude": 73.70, "plant_part": "leaf", "harvest_season": "monsoon",
        "initial_condition": "fresh", "collection_timestamp": "2024-01-15T08:00:00+00:00",
    })
    ev4 = store.insert("collection_events", {
        "id": "E4", "collector_id": "C1", "herb_id": "H2", "quantity_kg": 4.0,
        "latitude": 18.41, "longitude": 73.71, "plant_part": "leaf", "harvest_season": "monsoon",
        "initial_condition": "fresh", "collection_timestamp": "2024-01-16T08:00:00+00:00",
    })

    b1 = store.insert("batches", {
        "id": "B1", "batch_id": "BATCH-001", "herb_id": "H1", "aggregator_id": aggregator["id"],
        "total_quantity_kg": 19.5, "batch_status": "approved",
        "creation_timestamp": "2024-01-20T00:00:00+00:00",
    })
    b2 = store.insert("batches", {
        "id": "B2", "batch_id": "BATCH-002", "herb_id": "H2", "aggregator_id": aggregator["id"],
        "total_quantity_kg": 3.0, "batch_status": "approved", "collection_event_ids": ["E3"],
        "creation_timestamp": "2024-01-21T00:00:00+00:00",
    })
    b3 = store.insert("batches", {
        "id": "B3", "batch_id": "BATCH-003", "herb_id": "H1", "aggregator_id": aggregator["id"],
        "total_quantity_kg": 5.0, "batch_status": "pending",
        "creation_timestamp": "2024-01-22T00:00:00+00:00",
    })

    t1 = store.insert("quality_tests", {
        "id": "T1", "batch_id": "B1", "lab_id": lab["id"], "sample_id": "S-1", "test_type": "full_panel",
        "test_status": "pending", "test_date": "2024-01-25T00:00:00+00:00", "test_parameters": {},
    })
    t2 = store.insert("quality_tests", {
        "id": "T2", "batch_id": "B1", "lab_id": lab["id"], "sample_id": "S-2", "test_type": "dna",
        "test_status": "completed", "test_date": "2024-01-24T00:00:00+00:00",
        "test_results": {"overall_grade": "A"}, "completion_date": "2024-01-26T00:00:00+00:00",
    })

    s1 = store.insert("processing_steps", {
        "id": "P1", "batch_id": "B1", "processor_id": factory["id"], "process_type": "drying",
        "input_quantity_kg": 19.5, "output_quantity_kg": 15.0, "process_parameters": {"temp_c": 40},
        "process_conditions": {}, "process_date": "2024-02-01T00:00:00+00:00",
        "completion_date": "2024-02-02T00:00:00+00:00",
    })
    s2 = store.insert("processing_steps", {
        "id": "P2", "batch_id": "B2", "processor_id": factory["id"], "process_type": "grinding",
        "input_quantity_kg": 3.0, "output_quantity_kg": None, "process_parameters": {},
        "process_conditions": {}, "process_date": "2024-02-03T00:00:00+00:00", "completion_date": None,
    })

    return {
        "farmer": farmer, "aggregator": aggregator, "lab": lab, "factory": factory, "admin": admin,
        "herbs": [ashwagandha, tulsi], "collector": collector, "events": [ev1, ev2, ev3, ev4],
        "batches": [b1, b2, b3], "tests": [t1, t2], "steps": [s1, s2],
    }


@pytest.fixture
def product_factory(store):
    """Insert a product with a freshly encoded token"""
    from herbaltrace.qr import token_codec

    def _make(batch_ids, product_code="PROD_test", **extra):
        token = token_codec.encode({"type": "product", "productId": product_code, "batchIds": batch_ids})
        row = {
            "manufacturer_id": extra.pop("manufacturer_id", "factory-1"),
            "product_code": product_code,
            "product_name": "Ashwagandha Churna",
            "product_type": "powder",
            "final_quantity": 100,
            "unit_type": "grams",
            "formulation_details": {},
            "batch_ids": batch_ids,
            "qr_code": token,
        }
        row.update(extra)
        return store.insert("products", row)
    return _make
