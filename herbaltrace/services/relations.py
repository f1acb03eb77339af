# herbaltrace/services/relations.py
# Shared foreign-key expansions. Attribute names follow the joined table, or the
# party's role for joins into profiles.

from herbaltrace.row_store import Relation

HERB = Relation("herbs", "herbs", "herb_id")
BATCH_WITH_HERB = Relation("batches", "batches", "batch_id", nested=(HERB,))

AGGREGATOR = Relation("aggregator", "profiles", "aggregator_id")
LAB = Relation("lab", "profiles", "lab_id")
PROCESSOR = Relation("processor", "profiles", "processor_id")
MANUFACTURER = Relation("manufacturer", "profiles", "manufacturer_id")
COLLECTOR_WITH_PROFILE = Relation(
    "collectors", "collectors", "collector_id",
    nested=(Relation("profiles", "profiles", "profile_id"),),
)
