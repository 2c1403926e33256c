import os
import random
import asyncio
from typing import Optional
from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse

app = FastAPI(title="Mock Credit Bureau", version="1.0.0")

API_KEY = os.getenv("API_KEY") or os.getenv("BUREAU_API_KEY") or "test-api-key"
RISK_BANDS = ["Excellent", "Good", "Fair", "Poor", "Very Poor"]

# Tunables, overridable per test via app.state
app.state.error_rate = float(os.getenv("BUREAU_MOCK_ERROR_RATE", "0.1"))
app.state.max_delay_seconds = float(os.getenv("BUREAU_MOCK_MAX_DELAY", "2.5"))


def generate_bureau_data() -> dict:
    return {
        "score": random.randint(300, 599),
        "risk_band": random.choice(RISK_BANDS),
        "enquiries_6m": random.randint(0, 9),
        "defaults": random.randint(0, 2),
        "open_loans": random.randint(0, 4),
        "trade_lines": random.randint(5, 19),
    }


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/v1/credit/check")
async def credit_check(x_api_key: Optional[str] = Header(default=None)):
    if not x_api_key or x_api_key != API_KEY:
        return JSONResponse(
            status_code=401,
            content={"error": "Invalid API key", "message": "Please provide a valid X-API-KEY header"},
        )

    max_delay = app.state.max_delay_seconds
    if max_delay > 0:
        await asyncio.sleep(random.uniform(min(0.5, max_delay), max_delay))

    if random.random() < app.state.error_rate:
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": "Bureau service temporarily unavailable"},
        )

    return generate_bureau_data()
