from fastapi import FastAPI

from staynest.deps import configure_logging
from staynest.routers import listings, pages

configure_logging()

app = FastAPI(
    title="StayNest Listings",
    version="1.0.0",
    description="Search, compare and browse student housing listings (mess/hostel).",
)

app.include_router(listings.router)


@app.get("/api/health")
def health():
    return {"status": "ok"}


# catch-all page surface goes last
app.include_router(pages.router)


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
