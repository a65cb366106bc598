import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import FastAPI, APIRouter, Body, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.exceptions import HTTPException as StarletteHTTPException

import assignments as assignment_service
from database import db, get_documents
from errors import APIError, DuplicateEmail, InternalError, InvalidCredentials, Unauthorized
from schemas import (
    Assignment,
    AssignmentList,
    AuthResponse,
    LoginRequest,
    Message,
    Principal,
    RegisterRequest,
    Teacher,
    TeacherPublic,
)

logger = logging.getLogger(__name__)

TEACHERS = "teachers"
ASSIGNMENTS = assignment_service.COLLECTION

# Security settings
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logger.warning("SECRET_KEY is not set; using the development signing key")
    SECRET_KEY = "dev-secret-key-change-me"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
BCRYPT_ROUNDS = 10

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

DEFAULT_TEACHER_EMAIL = "priya.sharma@ecb.ac.in"
DEFAULT_TEACHER_PASSWORD = "password123"


# ---------------------- Auth Helpers ----------------------
def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except (ValueError, TypeError):
        # unrecognised or empty hash
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(teacher_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {"id": teacher_id, "email": email, "iat": issued_at, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """Validate signature and expiry and return the principal the token was issued to."""
    if not token:
        raise Unauthorized("No token, authorization denied")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthorized()
    teacher_id = payload.get("id")
    email = payload.get("email")
    if not isinstance(teacher_id, str) or not isinstance(email, str):
        raise Unauthorized()
    return Principal(id=teacher_id, email=email)


async def get_current_teacher(token: Optional[str] = Depends(oauth2_scheme)) -> Principal:
    if not token:
        raise Unauthorized("No token, authorization denied")
    return decode_access_token(token)


def public_teacher(teacher: Dict[str, Any]) -> TeacherPublic:
    return TeacherPublic(
        id=teacher["id"],
        name=teacher.get("name"),
        email=teacher["email"],
        department=teacher.get("department"),
    )


# ---------------------- Bootstrap ----------------------
def default_teachers():
    return [
        Teacher(
            id="1",
            name="Dr. Priya Sharma",
            email=DEFAULT_TEACHER_EMAIL,
            password=get_password_hash(DEFAULT_TEACHER_PASSWORD),
            department="Computer Science",
        ).model_dump()
    ]


def sample_assignments():
    return [
        Assignment(
            id="1",
            title="Array Manipulation Challenge",
            subject="Data Structures",
            course="B.Tech CSE 3rd Sem",
            status="pending",
            dueDate="2024-11-30",
            totalStudents=75,
            submittedCount=18,
            gradedCount=0,
            teacherId="1",
        ).model_dump(),
        Assignment(
            id="2",
            title="Algorithm Complexity Analysis",
            subject="Algorithms",
            course="B.Tech CSE 5th Sem",
            status="graded",
            dueDate="2024-11-25",
            totalStudents=68,
            submittedCount=68,
            gradedCount=68,
            teacherId="1",
        ).model_dump(),
    ]


def init_data_dir(store) -> None:
    """Create the default teacher and sample assignments on first start."""
    if not store.exists(TEACHERS) and store.seed(TEACHERS, default_teachers()):
        logger.info("Default teacher created, login: %s", DEFAULT_TEACHER_EMAIL)
    store.seed(ASSIGNMENTS, sample_assignments())


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_data_dir(db)
    logger.info("Serving JSON data from %s", os.path.abspath(db.data_dir))
    yield


app = FastAPI(title="Teacher Assignments API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------- Error Handlers ----------------------
@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse({"message": exc.message}, status_code=exc.status_code, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"message": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse({"message": "Invalid request"}, status_code=400)


@app.exception_handler(OSError)
@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": InternalError.message}, status_code=InternalError.status_code)


# ---------------------- Basic Routes ----------------------
@app.get("/", response_model=Message)
def read_root():
    return {"message": "Teacher Assignments API (JSON files) running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "storage": "❌ Not Available",
        "data_dir": os.path.abspath(db.data_dir),
        "collections": {},
    }
    try:
        for name in (TEACHERS, ASSIGNMENTS):
            if db.exists(name):
                response["collections"][name] = len(db.load(name))
        response["storage"] = "✅ Available" if response["collections"] else "⚠️  No documents yet"
    except Exception as e:
        response["storage"] = f"❌ Error: {str(e)[:80]}"
    return response


router = APIRouter()


# ---------------------- Auth Endpoints ----------------------
@router.post("/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest):
    matches = get_documents(TEACHERS, {"email": payload.email}, store=db)
    teacher = matches[0] if matches else None
    if not teacher or not verify_password(payload.password, teacher.get("password", "")):
        logger.info("Failed login attempt for %s", payload.email)
        raise InvalidCredentials()
    token = create_access_token(teacher["id"], teacher["email"])
    return AuthResponse(token=token, teacher=public_teacher(teacher))


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest):
    password_hash = get_password_hash(payload.password)
    with db.transaction(TEACHERS) as teachers:
        # Prevent duplicate
        if any(t.get("email") == payload.email for t in teachers):
            raise DuplicateEmail()
        teacher = Teacher(
            id=db.new_id(),
            name=payload.name,
            email=payload.email,
            password=password_hash,
            department=payload.department,
        ).model_dump()
        teachers.append(teacher)
    logger.info("Registered teacher %s", teacher["id"])
    token = create_access_token(teacher["id"], teacher["email"])
    return AuthResponse(token=token, teacher=public_teacher(teacher))


# ---------------------- Assignments ----------------------
@router.get("/assignments", response_model=AssignmentList)
def list_assignments(teacher: Principal = Depends(get_current_teacher)):
    return assignment_service.list_assignments(db, teacher.id)


@router.post("/assignments", status_code=201)
def create_assignment(payload: Dict[str, Any] = Body(...), teacher: Principal = Depends(get_current_teacher)):
    return assignment_service.create_assignment(db, teacher.id, payload)


@router.get("/assignments/{assignment_id}")
def get_assignment(assignment_id: str, teacher: Principal = Depends(get_current_teacher)):
    return assignment_service.get_assignment(db, teacher.id, assignment_id)


@router.put("/assignments/{assignment_id}")
def update_assignment(
    assignment_id: str, payload: Dict[str, Any] = Body(...), teacher: Principal = Depends(get_current_teacher)
):
    return assignment_service.update_assignment(db, teacher.id, assignment_id, payload)


@router.delete("/assignments/{assignment_id}", response_model=Message)
def delete_assignment(assignment_id: str, teacher: Principal = Depends(get_current_teacher)):
    assignment_service.delete_assignment(db, teacher.id, assignment_id)
    return {"message": "Deleted successfully"}


@router.post("/assignments/{assignment_id}/mark-graded")
def mark_graded(assignment_id: str, teacher: Principal = Depends(get_current_teacher)):
    return assignment_service.mark_graded(db, teacher.id, assignment_id)


@router.post("/assignments/{assignment_id}/remind", response_model=Message)
def remind(assignment_id: str, teacher: Principal = Depends(get_current_teacher)):
    return assignment_service.send_reminder(teacher.id, assignment_id)


# Served both at the root and under /api, where the frontend expects it.
app.include_router(router)
app.include_router(router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    port = int(os.getenv("PORT", 5000))
    uvicorn.run(app, host="0.0.0.0", port=port)
