"""Synthetic telemetry for live demos, one generator per domain."""
import random

from models.telemetry import TelemetryRecord

MERCHANTS = [
    ("Electronics", "low"), ("Grocery", "low"), ("Gas Station", "low"),
    ("Online Retail", "medium"), ("Jewelry", "high"), ("Cash Advance", "high"), ("Travel", "medium"),
]

LOCATIONS = [
    "Mumbai Warehouse", "Delhi Hub", "Chennai Port", "Kolkata Depot",
    "Bangalore DC", "Hyderabad Terminal", "Pune Gateway", "Ahmedabad Yard",
]

DESTINATIONS = [
    "Jaipur Central", "Lucknow North", "Kochi Harbor", "Patna East",
    "Guwahati Hub", "Bhopal West", "Chandigarh DC", "Nagpur Junction",
]

REGIONS = ["Zone A - Coastal", "Zone B - Inland", "Zone C - Mountain", "Zone D - Urban", "Zone E - River Basin"]


def manufacturing(rng):
    return {
        "machineLoad": 80 + rng.random() * 50,
        "strokeRate": 40 + rng.random() * 30,
        "defectPercent": rng.random() * 4,
        "furnaceTemp": 835 + rng.random() * 30,
        "dieWear": 30 + rng.random() * 65,
        "platingThickness": 5 + rng.random() * 10,
        "hardness": 220 + rng.random() * 60,
        "productionOutput": round(800 + rng.random() * 400),
    }


def credit(rng):
    category, risk = rng.choice(MERCHANTS)
    hour = rng.randrange(24)
    return {
        "amount": round(50 + rng.random() * 8000),
        "locationMismatch": rng.random() > 0.7,
        "frequencyPerMin": rng.randrange(8),
        "merchantCategory": category,
        "merchantRisk": risk,
        "riskScore": round(10 + rng.random() * 90),
        "timeAnomaly": hour < 5,
        "hour": hour,
        "cardLast4": str(rng.randrange(1000, 10000)),
    }


def healthcare(rng):
    return {
        "heartRate": round(60 + rng.random() * 80),
        "systolic": round(100 + rng.random() * 60),
        "diastolic": round(60 + rng.random() * 40),
        "bloodSugar": round(70 + rng.random() * 150),
        "oxygenSat": round(88 + rng.random() * 12),
        "bodyTemp": round(36 + rng.random() * 3, 1),
        "patientId": f"PT-{rng.randrange(1000, 10000)}",
    }


def logistics(rng):
    return {
        "shipmentId": f"SHP-{rng.randrange(10000, 100000)}",
        "currentLocation": rng.choice(LOCATIONS),
        "destination": rng.choice(DESTINATIONS),
        "routeEfficiency": 50 + rng.random() * 50,
        "delayTime": round(rng.random() * 150),
        "fuelConsumption": 25 + rng.random() * 35,
        "vehicleHealth": round(20 + rng.random() * 80),
        "weatherRisk": round(rng.random() * 100),
    }


def disaster(rng):
    return {
        "seismicLevel": round(1 + rng.random() * 8, 1),
        "windSpeed": round(20 + rng.random() * 200),
        "rainfallIntensity": round(rng.random() * 100),
        "floodRisk": round(rng.random() * 100),
        "populationDensity": round(500 + rng.random() * 15000),
        "alertSeverity": rng.randint(1, 5),
        "sensorId": f"SENS-{rng.randrange(100, 1000)}",
        "region": rng.choice(REGIONS),
    }


GENERATORS = {
    "manufacturing": manufacturing,
    "credit": credit,
    "healthcare": healthcare,
    "logistics": logistics,
    "disaster": disaster,
}


class TelemetryGenerator:
    """Callable producing a fresh live TelemetryRecord per call."""

    def __init__(self, domain, seed=None):
        if domain not in GENERATORS:
            raise KeyError(f"No generator for domain {domain!r}")
        self.domain = domain
        self._make = GENERATORS[domain]
        self._rng = random.Random(seed)

    def __call__(self):
        return TelemetryRecord(domain=self.domain, fields=self._make(self._rng), source="live")
