from pathlib import Path
from dotenv import load_dotenv
import os

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# Database
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'giornale_lavori')

# JWT Config
JWT_SECRET = os.environ.get('JWT_SECRET', 'giornale_lavori_secret_key')
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24
MIN_PASSWORD_LENGTH = 8

# Cloudinary
CLOUDINARY_CLOUD_NAME = os.environ.get('CLOUDINARY_CLOUD_NAME', '')
CLOUDINARY_API_KEY = os.environ.get('CLOUDINARY_API_KEY', '')
CLOUDINARY_API_SECRET = os.environ.get('CLOUDINARY_API_SECRET', '')

# Attachments
ALLOWED_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.webp', '.mp4', '.mov', '.pdf'}
IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.webp'}
VIDEO_EXTENSIONS = {'.mp4', '.mov'}
MAX_FILE_SIZE = 20 * 1024 * 1024  # 20MB

# Catalogue compare-and-swap attempts per save
CATALOGUE_MAX_RETRIES = 3

# AI
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o')

# Defaults for new projects and new logs
DEFAULT_STAKEHOLDERS = [
    {"id": "user-1", "name": "Ing. Mario Rossi", "role": "Direttore dei Lavori (DL)"},
    {"id": "user-2", "name": "Geom. Luca Verdi", "role": "Coordinatore per la Sicurezza (CSE)"},
    {"id": "user-3", "name": "Paolo Bianchi", "role": "Impresa Esecutrice"},
]
DEFAULT_WEATHER = {"state": "Sole", "temperature": 20, "precipitation": "Assenti"}
