import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your_fixed_secret_key_here_replace_in_production'
    # Prefer env var for credentials, fallback to file
    FIREBASE_CREDENTIALS = os.environ.get('FIREBASE_CREDENTIALS_JSON') or "serviceAccountKey.json"

    # Nominatim requires an identifying User-Agent
    GEOCODER_URL = os.environ.get('GEOCODER_URL') or "https://nominatim.openstreetmap.org/search"
    GEOCODER_USER_AGENT = os.environ.get('GEOCODER_USER_AGENT') or "CampusCruiserApp/1.0 (https://campus-cruiser-app.com)"
    GEOCODER_TIMEOUT = float(os.environ.get('GEOCODER_TIMEOUT') or 10)

    EMAIL_HOST = os.environ.get('EMAIL_HOST')
    EMAIL_PORT = os.environ.get('EMAIL_PORT')
    EMAIL_USER = os.environ.get('EMAIL_USER')
    EMAIL_PASS = os.environ.get('EMAIL_PASS')

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Pre-built collaborators (tests, scripts). When set, Firebase init is skipped.
    FIRESTORE_CLIENT = None
    GEOCODER = None
