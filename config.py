import os
from dotenv import load_dotenv

# Load variables from a .env file (local development)
load_dotenv()

# --- Core settings ---

# Path to the sqlite file that keeps every pet.
DB_PATH = os.getenv('DB_PATH', 'bookish_pet.db')

# Port for Uvicorn
PORT = int(os.getenv('PORT', 8000))

# How often the decay loop runs, in seconds. Decay itself is applied per whole
# hour elapsed, so this only controls how quickly a due hour gets noticed.
DECAY_INTERVAL_SECONDS = float(os.getenv('DECAY_INTERVAL_SECONDS', 30))

# Unfinished minigame sessions older than this are dropped by the sweep.
SESSION_RETENTION_HOURS = float(os.getenv('SESSION_RETENTION_HOURS', 24))

# --- Telegram bot (optional) ---

# Bot token. Only taken from the environment.
BOT_TOKEN = os.getenv('BOT_TOKEN')

# Public URL the app is served on.
WEBAPP_URL = os.getenv('WEBAPP_URL')

# Without both values the API still runs; only the bot stays off.
BOT_ENABLED = bool(BOT_TOKEN and WEBAPP_URL)

if BOT_ENABLED:
    # --- Automatic URL cleanup ---
    BASE_WEBAPP_URL = WEBAPP_URL.rstrip('/')

    # URL for setting the webhook
    WEBHOOK_URL = f"{BASE_WEBAPP_URL}/{BOT_TOKEN}"
else:
    BASE_WEBAPP_URL = None
    WEBHOOK_URL = None
