"""
Seeded heat records for demo mode.

Heat 93378 is the reference heat from the melt shop log. 93379-93381
are derived from it with a seeded perturbation of chemistry and bucket
weights, so every process gets the same catalog.
"""

import copy
import random
from typing import Any, Dict, List

REFERENCE_HEAT_ID = 93378
DERIVED_HEAT_IDS = [93379, 93380, 93381]

REFERENCE_HEAT: Dict[str, Any] = {
    "heat": REFERENCE_HEAT_ID,
    "ts": "2019-01-13T03:00:11Z",
    "grade": "13KhFA/9",
    "master": "Ivanov",
    "operator": "Petrov",
    "modelStatus": "idle",
    "confidence": 85,
    "buckets": [
        {
            "bucket": 1,
            "totalWeight": 101.3,
            "materials": [
                {"name": "Scrap 3AZhD", "weight": 9.7},
                {"name": "Scrap 25A", "weight": 5.8},
                {"name": "Scrap 3AN", "weight": 76.1},
                {"name": "Turnings 15A", "weight": 4.2},
                {"name": "Anthracite", "weight": 0.8},
                {"name": "HBI (briquetted DRI)", "weight": 4.7},
            ],
        },
        {
            "bucket": 2,
            "totalWeight": 56.1,
            "materials": [
                {"name": "Scrap 3AZhD", "weight": 9.9},
                {"name": "Scrap 3AN", "weight": 39.5},
                {"name": "Turnings 15A", "weight": 5.9},
                {"name": "Anthracite", "weight": 0.8},
            ],
        },
    ],
    # bucket, stage, planned/actual MWh, planned/actual time, profile, temp, status
    "stages": [
        {"bucket": 1, "stage": 10, "plannedEnergy": 0.38, "actualEnergy": 0.38, "plannedTime": "00:24",
         "actualTime": "00:23", "profile": 3, "temp": None, "status": "done"},
        {"bucket": 1, "stage": 12, "plannedEnergy": 0.19, "actualEnergy": 0.20, "plannedTime": "00:09",
         "actualTime": "00:10", "profile": 3, "temp": None, "status": "done"},
        {"bucket": 1, "stage": 14, "plannedEnergy": 0.20, "actualEnergy": 0.20, "plannedTime": "00:09",
         "actualTime": "00:10", "profile": 3, "temp": None, "status": "done"},
        {"bucket": 1, "stage": 15, "plannedEnergy": 0.18, "actualEnergy": None, "plannedTime": "00:09",
         "actualTime": None, "profile": 5, "temp": None, "status": "current"},
        {"bucket": 1, "stage": 18, "plannedEnergy": 20.02, "actualEnergy": None, "plannedTime": "15:31",
         "actualTime": None, "profile": 5, "temp": None, "status": "planned"},
        {"bucket": 2, "stage": 10, "plannedEnergy": 0.389, "actualEnergy": None, "plannedTime": "00:24",
         "actualTime": None, "profile": 4, "temp": None, "status": "planned"},
        {"bucket": 2, "stage": 18, "plannedEnergy": 9.05, "actualEnergy": None, "plannedTime": "00:08",
         "actualTime": None, "profile": 5, "temp": None, "status": "planned"},
        {"bucket": 2, "stage": 17, "plannedEnergy": 23.4, "actualEnergy": None, "plannedTime": "00:16:42",
         "actualTime": None, "profile": 3, "temp": 1590, "status": "planned"},
    ],
    "additives": [
        {"bucket": 1, "name": "Lime 3-80 mm", "weight": 3002, "energy": 16.8},
        {"bucket": 2, "name": "Anthracite", "weight": 706, "energy": 31.0},
        {"bucket": 2, "name": "Lime 3-80 mm", "weight": 3006, "energy": 31.0},
        {"bucket": 2, "name": "Magma", "weight": 606, "energy": 44.8},
        {"bucket": 2, "name": "Magma", "weight": 1000, "energy": 50.4},
    ],
    "chemSteel": {"C": 0.090, "Mn": 0.140, "Si": 0.000, "P": 0.004, "S": 0.029,
                  "Cr": 0.100, "Cu": 0.190, "Ni": 0.120, "V": None, "Mo": 0.027},
    "chemSlag": {"CaO": 0.090, "SiO2": 0.140, "P2O5": 0.000, "Cr2O3": 0.004, "FeO": 0.029,
                 "MnO": 0.100, "MgO": 0.190, "Al2O3": 0.120, "Basicity": None},
    "insights": [
        {"id": "carbon-low", "title": "Carbon content low",
         "message": "C 0.090% is below the 0.10% grade minimum, add 0.42t carbon", "severity": "high"},
        {"id": "sulfur-high", "title": "Sulfur content high",
         "message": "S 0.029% exceeds the 0.025% grade maximum, desulfurize", "severity": "medium"},
    ],
}


def derive_record(heat_id: int) -> Dict[str, Any]:
    rng = random.Random(heat_id)
    record = copy.deepcopy(REFERENCE_HEAT)
    record["heat"] = heat_id
    record["confidence"] = 78 + rng.randint(0, 11)
    record["insights"] = []

    for element, value in record["chemSteel"].items():
        if value:
            record["chemSteel"][element] = round(value * (0.85 + rng.random() * 0.3), 3)

    for bucket in record["buckets"]:
        for material in bucket["materials"]:
            material["weight"] = round(material["weight"] * (0.9 + rng.random() * 0.2), 1)
        bucket["totalWeight"] = round(sum(m["weight"] for m in bucket["materials"]), 1)
    return record


def build_catalog() -> Dict[int, Dict[str, Any]]:
    catalog = {REFERENCE_HEAT_ID: copy.deepcopy(REFERENCE_HEAT)}
    for heat_id in DERIVED_HEAT_IDS:
        catalog[heat_id] = derive_record(heat_id)
    return catalog


def catalog_ids() -> List[int]:
    return [REFERENCE_HEAT_ID] + DERIVED_HEAT_IDS
