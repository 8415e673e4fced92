"""
Resource server: a protected API for authenticated calls from the session client.
Bearer access tokens issued by the identity provider; /public is open, /me is not. Port 7000.
"""
from fastapi import FastAPI

from resource_server.auth import RequireUser

app = FastAPI(title="Resource Server", version="0.2.0")


@app.get("/health")
def health():
    return {"status": "ok", "service": "resource_server"}


@app.get("/public")
def public():
    """No token needed."""
    return {"message": "Public data", "access": "anonymous"}


@app.get("/me")
def me(claims: dict = RequireUser):
    """Caller identity from the verified access token."""
    return {"message": "Authenticated", "sub": claims["sub"], "email": claims.get("email")}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("resource_server.main:app", host="127.0.0.1", port=7000, reload=True)
