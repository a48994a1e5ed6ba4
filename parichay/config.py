"""
Configuration and shared helpers
"""

import os
import re
import uuid
import hashlib
import secrets
import string
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
from pathlib import Path

# Load .env
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# MongoDB
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'parichay')

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]

# Application
APP_ENV = os.environ.get('APP_ENV', 'development')
APP_URL = os.environ.get('APP_URL', 'http://localhost:3000').rstrip('/')
CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

# Uploaded files live under UPLOAD_ROOT/<type>/ and are served at /uploads
UPLOAD_ROOT = Path(os.environ.get('UPLOAD_ROOT', str(ROOT_DIR.parent / 'public' / 'uploads')))

# Email (SendGrid)
SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY', '')
SENDER_EMAIL = os.environ.get('SENDER_EMAIL', 'noreply@parichay.app')
SENDER_NAME = os.environ.get('SENDER_NAME', 'Parichay')

# WhatsApp Cloud API (stub mode when token or phone number id is missing)
WHATSAPP_ACCESS_TOKEN = os.environ.get('WHATSAPP_ACCESS_TOKEN', '')
WHATSAPP_PHONE_NUMBER_ID = os.environ.get('WHATSAPP_PHONE_NUMBER_ID', '')
WHATSAPP_API_VERSION = os.environ.get('WHATSAPP_API_VERSION', 'v17.0')

# Google Places
GOOGLE_PLACES_API_KEY = os.environ.get('GOOGLE_PLACES_API_KEY', '')

# Follow-up reminders (hourly job, also callable through /api/cron/send-reminders)
CRON_SECRET = os.environ.get('CRON_SECRET', '')
SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() == 'true'

SESSION_DAYS = 7


def is_production() -> bool:
    return APP_ENV == 'production'


# ==================== HELPERS ====================

EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def hash_password(password: str) -> str:
    """Hash a password with SHA256"""
    return hashlib.sha256(password.encode()).hexdigest()

def generate_token() -> str:
    """Generate a secure session token"""
    return secrets.token_urlsafe(32)

SHORT_CODE_ALPHABET = string.ascii_letters + string.digits

def generate_short_code(length: int = 6) -> str:
    """Random [A-Za-z0-9] code for short links"""
    return ''.join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))

def new_id() -> str:
    return str(uuid.uuid4())

def now_iso() -> str:
    """Current UTC date/time as ISO string"""
    return datetime.now(timezone.utc).isoformat()

def to_utc_iso(value: datetime) -> str:
    """Naive datetimes are taken as UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()

def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_REGEX.match(email) is not None

def generate_slug(text: str) -> str:
    """
    URL-friendly slug: lowercase, runs of non [a-z0-9] collapsed to '-',
    leading/trailing dashes stripped.
    """
    slug = re.sub(r'[^a-z0-9]+', '-', (text or '').lower())
    return slug.strip('-')
