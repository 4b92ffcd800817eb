import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

PACKAGE_DIR = Path(__file__).resolve().parent
REPO_ROOT = PACKAGE_DIR.parent

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
SUMMARY_MODEL = os.getenv("ARCANA_SUMMARY_MODEL", "gpt-4o-mini")

DB_PATH = os.getenv("ARCANA_DB_PATH", str(REPO_ROOT / "data" / "arcana.db"))
SPREADS_PATH = os.getenv("ARCANA_SPREADS_PATH", str(PACKAGE_DIR / "data" / "spreads.json"))

# question length tiers, in characters
QUESTION_FREE_LIMIT = int(os.getenv("ARCANA_QUESTION_FREE_LIMIT", "500"))
QUESTION_HARD_LIMIT = int(os.getenv("ARCANA_QUESTION_HARD_LIMIT", "2000"))

# stored text fields on a reading
MAX_QUESTION_LENGTH = 1000
MAX_REFLECTION_LENGTH = 1000

# surcharges on top of a spread's base cost
EXTENDED_QUESTION_SURCHARGE = 1
ADVANCED_STYLE_SURCHARGE = 1
FOLLOW_UP_COST = 1
