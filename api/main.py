"""
FastAPI main application for the Bookshelf API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import verify_access_token
from api.models import (
    BookMessageResponse, BookPayload, ErrorResponse, HealthResponse, HomeResponse,
    LoginRequest, LoginResponse, SignupRequest, SignupResponse, UserResponse
)
from services.auth_service import AuthService
from services.book_service import BookService
from services.security import TokenClaims
from store.books import BookStore
from store.database import MongoDBManager
from store.models import BookRecord
from store.users import UserStore
from utilities.config import config
from utilities.errors import AuthError, BookshelfError, InternalError

# Setup logging
logger = structlog.get_logger(__name__)

# Process-wide database handle, connected in lifespan
db_manager = MongoDBManager(
    connection_url=config.mongodb_url,
    database_name=config.mongodb_database
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Bookshelf API")
    if config.jwt_secret_key == "change-me-in-production" and config.is_production():
        logger.warning("JWT_SECRET_KEY is the default value; set it in the environment")

    await db_manager.connect()

    yield

    logger.info("Shutting down Bookshelf API")
    await db_manager.disconnect()


def get_auth_service() -> AuthService:
    return AuthService(UserStore(db_manager.users))


def get_book_service() -> BookService:
    return BookService(BookStore(db_manager.books))


# Create FastAPI application
app = FastAPI(
    title=config.api_title,
    description="""
    A small REST API for a book catalogue with bearer-token authentication.

    ## Authentication

    Sign up at `/auth/signup`, log in at `/auth/login` and send the returned
    token on protected routes:

    ```
    Authorization: Bearer your_token_here
    ```

    Tokens expire after 15 minutes.
    """,
    version=config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(BookshelfError)
async def bookshelf_exception_handler(request: Request, exc: BookshelfError):
    """Map domain errors to their status code and a fixed message."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON or wrongly typed fields."""
    logger.info("Rejected malformed request body", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message="Invalid request body").model_dump(exclude_none=True)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions raised by routing (unknown path, wrong method)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort; never leaks the exception text."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message="Internal server error").model_dump(exclude_none=True)
    )


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Report service and database status."""
    health_info = await db_manager.health_check()
    db_status = health_info.get("status", "unknown")
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "unhealthy",
        timestamp=datetime.utcnow(),
        version=config.api_version,
        database_status=db_status
    )


# Auth endpoints
@app.post(
    "/auth/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SignupResponse,
    tags=["Auth"]
)
async def signup(
    body: Optional[SignupRequest] = None,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Register a new user. Username and email must both be unused."""
    body = body or SignupRequest()
    try:
        user = await auth_service.register(
            username=body.username,
            email=body.email,
            password=body.password,
            role=body.role
        )
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("User registration failed", error=str(e))
        raise InternalError("An error occurred while registering the user")

    return SignupResponse(
        success=True,
        message="New user created successfully",
        data=UserResponse.from_record(user)
    )


@app.post("/auth/login", response_model=LoginResponse, tags=["Auth"])
async def login(
    response: Response,
    body: Optional[LoginRequest] = None,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange username and password for a bearer token."""
    body = body or LoginRequest()
    try:
        token = await auth_service.login(body.username, body.password)
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("User authentication failed", error=str(e))
        raise InternalError("Internal server error. Please try again later.")

    response.set_cookie("loggedin", "logged", httponly=True)
    return LoginResponse(success=True, message="Logged in successfully", token=token)


# Protected endpoints
@app.get("/home", response_model=HomeResponse, tags=["Home"])
async def home(claims: TokenClaims = Depends(verify_access_token)):
    """Greeting for authenticated users."""
    return HomeResponse(message="welcome to home page")


# Books endpoints
@app.get("/api/books/get", response_model=List[BookRecord], tags=["Books"])
async def get_all_books(book_service: BookService = Depends(get_book_service)):
    """List every book."""
    try:
        return await book_service.list_books()
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("Error fetching books", error=str(e))
        raise InternalError("Internal server error")


@app.get("/api/books/get/{book_id}", response_model=BookRecord, tags=["Books"])
async def get_book_by_id(
    book_id: str,
    book_service: BookService = Depends(get_book_service)
):
    """
    Get a single book by ID.

    - **book_id**: MongoDB ObjectId of the book
    """
    try:
        return await book_service.get_book(book_id)
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("Error fetching book", book_id=book_id, error=str(e))
        raise InternalError("Internal server error")


@app.post("/api/books/post", response_model=BookMessageResponse, tags=["Books"])
async def add_book(
    body: Optional[BookPayload] = None,
    book_service: BookService = Depends(get_book_service)
):
    """Add a book. Title and author are required; title must be unused."""
    fields = body.model_dump(exclude_unset=True) if body else {}
    try:
        book = await book_service.create_book(fields)
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("Error adding book", error=str(e))
        raise InternalError("Internal server error")

    return BookMessageResponse(message="New book added successfully", data=book)


@app.put("/api/books/update/{book_id}", response_model=BookMessageResponse, tags=["Books"])
async def update_book_by_id(
    book_id: str,
    body: Optional[BookPayload] = None,
    book_service: BookService = Depends(get_book_service)
):
    """Replace only the fields present in the body."""
    fields = body.model_dump(exclude_unset=True) if body else {}
    try:
        book = await book_service.update_book(book_id, fields)
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("Error updating book", book_id=book_id, error=str(e))
        raise InternalError("Internal server error")

    return BookMessageResponse(message="Book updated successfully", data=book)


@app.delete("/api/books/delete/{book_id}", response_model=BookMessageResponse, tags=["Books"])
async def delete_book_by_id(
    book_id: str,
    book_service: BookService = Depends(get_book_service)
):
    """Delete a book and return it as it was."""
    try:
        book = await book_service.delete_book(book_id)
    except BookshelfError:
        raise
    except Exception as e:
        logger.error("Error deleting book", book_id=book_id, error=str(e))
        raise InternalError("Internal server error")

    return BookMessageResponse(message="Book deleted successfully", data=book)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="info"
    )
