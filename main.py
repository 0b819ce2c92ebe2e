from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
from dotenv import load_dotenv

from reviews.routes import router as reviews_router

load_dotenv()

logging.basicConfig(level=logging.INFO)
logging.info("App starting with MONGO_DATABASE=%s", os.getenv("MONGO_DATABASE", "campus_reviews"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app = FastAPI(title="Campus Reviews API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reviews_router)


@app.get("/health", tags=["meta"], summary="Health check")
def health():
    return {"status": "ok"}
