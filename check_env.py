import os
from dotenv import load_dotenv
from sqlalchemy import create_engine, text

load_dotenv()

db_url = os.getenv("DATABASE_URL", "sqlite:///./socsim.db")

print("DATABASE_URL:", db_url)
print("API_KEY exists:", os.getenv("API_KEY") is not None)
print("RANDOM_SEED:", os.getenv("RANDOM_SEED"))
print("GENERATOR_ENABLED_AT_BOOT:", os.getenv("GENERATOR_ENABLED_AT_BOOT"))
print("ENVIRONMENT:", os.getenv("ENVIRONMENT"))

try:
    with create_engine(db_url).connect() as conn:
        conn.execute(text("SELECT 1"))
    print("✅ Database connection successful!")
except Exception as e:
    print("❌ Database connection failed:")
    print(e)
