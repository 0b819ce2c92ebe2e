from motor.motor_asyncio import AsyncIOMotorClient
import os
from dotenv import load_dotenv

load_dotenv()

# MongoDB connection string (batch commits use transactions: point this at a replica set)
MONGO_DETAILS = os.getenv("MONGO_URI", "mongodb://localhost:27017/?replicaSet=rs0")
DATABASE_NAME = os.getenv("MONGO_DATABASE", "campus_reviews")
MAX_BATCH_OPERATIONS = int(os.getenv("MONGO_MAX_BATCH_OPERATIONS", "500"))

# Create async client
client = AsyncIOMotorClient(MONGO_DETAILS, tz_aware=True)
db = client[DATABASE_NAME]

# Collections
users_collection = db["users"]
professors_collection = db["professors"]
ratings_collection = db["professor_ratings"]
courses_collection = db["courses"]
organizations_collection = db["organizations"]
