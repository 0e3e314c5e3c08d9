"""Configuration for the clinic booking client.

Connection settings come from the environment (entry points call
``load_dotenv()`` first); clinic data that rarely changes lives here as
plain constants - modify as needed without touching code.
"""
import os

# API Configuration
API_BASE_URL = os.getenv("CLINIC_API_BASE_URL", "http://localhost:3003/api").rstrip("/")
API_TIMEOUT = int(os.getenv("CLINIC_API_TIMEOUT", "15"))
HEALTH_TIMEOUT = int(os.getenv("CLINIC_HEALTH_TIMEOUT", "3"))
MAX_RETRIES = int(os.getenv("CLINIC_MAX_RETRIES", "3"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() == "true"

MOCK_API_PORT = int(os.getenv("MOCK_API_PORT", "3003"))

# Circuit breaker
BREAKER_FAILURE_THRESHOLD = 5
BREAKER_TIMEOUT_SECONDS = 60

# GET cache for specialties / clinic hours
CACHE_TTL_SECONDS = 5 * 60

# Hours shown when no backend source answers (07:00 .. 21:00)
DEFAULT_HOURS = [f"{hour:02d}:00" for hour in range(7, 22)]

HOUR_BLOCK_MINUTES = 60

BOOKING_WINDOW_DAYS = 30

STAFF_ROLES = ("admin", "operador", "doctor")

# Demo roster used when /doctors is unreachable.
# weekdays: 0=Sunday ... 6=Saturday (backend convention)
DEFAULT_DOCTORS = [
    {
        "id": "dr-cairo",
        "name": "Dr. Cairo",
        "specialty": "General Dentistry",
        "shifts": [
            {"start": "08:00", "end": "12:00", "weekdays": [1, 2, 3, 4]},
            {"start": "16:00", "end": "19:00", "weekdays": [1, 2, 3, 4]},
        ],
    },
    {
        "id": "dra-perez",
        "name": "Dra. Perez",
        "specialty": "Endodontics",
        "shifts": [{"start": "09:00", "end": "12:00", "weekdays": [2, 4, 6]}],
    },
    {
        "id": "dr-ruiz",
        "name": "Dr. Ruiz",
        "specialty": "Orthodontics",
        "shifts": [{"start": "17:00", "end": "19:00", "weekdays": [1, 3, 5]}],
    },
]

WALK_IN_HOURS = {
    "Monday - Friday": "08:00 - 13:00",
    "Saturday": "08:00 - 12:00",
}

WEEKDAY_NAMES = {
    0: "Sunday",
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}

# User-facing messages
GENERIC_RETRY_MESSAGE = "Could not complete the booking. Please try again."
NETWORK_ERROR_MESSAGE = "No connection to the clinic. Check your internet connection."
WALK_IN_MESSAGE = "Walk-in attention, first come first served. No appointment needed."
REQUEST_SUCCESS_MESSAGE = (
    "Your request was received. Clinic staff will contact you to assign a time."
)
SLOT_SUCCESS_MESSAGE = "Appointment booked for {date} at {hour}."
