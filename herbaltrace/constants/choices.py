# herbaltrace/constants/choices.py

ROLE_DESCRIPTIONS = {
    "farmer": "Cultivate and harvest medicinal herbs",
    "wild_collector": "Collect herbs from natural habitats",
    "aggregator": "Collect and batch herbs from farmers/collectors",
    "lab": "Perform quality testing and certification",
    "factory": "Process herbs into finished products",
    "consumer": "Purchase and verify herb authenticity",
    "admin": "System administration and oversight",
}
ROLES = tuple(ROLE_DESCRIPTIONS)
COLLECTOR_ROLES = ("farmer", "wild_collector")

PLANT_PARTS = ("root", "leaf", "stem", "bark", "seed", "flower", "fruit", "whole_plant")
HARVEST_SEASONS = ("spring", "summer", "monsoon", "winter")
INITIAL_CONDITIONS = ("fresh", "partially_dried", "sun_dried", "damaged")

CONSERVATION_STATUSES = ("common", "vulnerable", "endangered", "critically_endangered")
RULE_TYPES = ("seasonal_restriction", "geo_fencing", "quantity_limit", "quality_threshold")

PRODUCT_TYPES = ("tablet", "capsule", "powder", "extract", "oil")
UNIT_TYPES = ("tablets", "capsules", "grams", "ml")

LAB_GRADES = {
    "A": "Grade A - Premium",
    "B": "Grade B - Standard",
    "C": "Grade C - Below Standard",
    "REJECT": "Rejected",
}

TEST_STATUSES = ("pending", "completed", "failed")
