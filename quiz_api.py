"""
Quiz Generation API — Main Application
FastAPI application exposing the quiz generation & rendering pipeline.

Run:
    uvicorn quiz_api:app --reload
"""

from dotenv import load_dotenv
load_dotenv()

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizgen.config import QUIZ_BACKEND
from routers import quiz

app = FastAPI(
    title="Quiz Generation API",
    description="Generates multiple-choice quizzes with an LLM and renders quiz / answer-key PDFs",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz.router)


@app.get("/health")
async def health_check():
    """Basic health check - API is running"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "quiz-api",
        "backend": QUIZ_BACKEND,
    }
