# conftest.py
import os

# Pin the settings read by gate.main so a developer's .env does not start
# a boot game or slow down missing UNO notices during tests.
# load_dotenv never overrides variables that are already set.
os.environ["PLAYER_IDS"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MISSING_UNO_NOTICE_DELAY"] = "0"
os.environ["TURN_TIMEOUT"] = ""
