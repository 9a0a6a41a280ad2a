import os
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from pymongo.errors import DuplicateKeyError
from starlette.datastructures import UploadFile as StarletteUploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from config import CORS_ORIGINS, UPLOAD_DIR, PORT
from database import (
    create_document,
    delete_document,
    ensure_indexes,
    get_document,
    get_documents,
    is_valid_id,
    replace_document,
    update_document,
)
from logging_config import get_logger
from schemas import (
    Admin,
    AdminRole,
    Contact,
    Event,
    Logo,
    Member,
    Milestone,
    OfficeDetails,
    SocialMediaLinks,
    Systemdata,
    Team,
)
from storage import UploadTooLarge, delete_file, delete_files, save_upload

logger = get_logger(__name__)

app = FastAPI(title="Community Site Admin API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

ensure_indexes()


# Error bodies always carry a human readable "message"

def _error_list(exc) -> List[Dict]:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "All required fields must be filled.", "errors": _error_list(exc)},
    )


# Utility

def require_db():
    if database.db is None:
        raise HTTPException(status_code=503, detail="Database not available")


def jsonify(doc: Optional[Dict]) -> Optional[Dict]:
    if doc is not None and "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def store_upload(upload: UploadFile):
    try:
        return save_upload(upload)
    except UploadTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))


def has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


# Events

@app.post("/api/events", status_code=201)
def create_event(
    image: Optional[UploadFile] = File(None),
    schedule: Optional[str] = Form(None),
    venue: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    fee: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    wacommunity: Optional[str] = Form(None),
    registerlink: Optional[str] = Form(None),
    paymentname: Optional[str] = Form(None),
    prize: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    teamSize: Optional[int] = Form(None),
):
    require_db()
    if not has_file(image):
        raise HTTPException(status_code=400, detail="Image file is required")

    stored = store_upload(image)
    event = Event(
        schedule=schedule,
        venue=venue,
        title=title,
        type=type,
        fee=fee,
        description=description,
        wacommunity=wacommunity,
        registerlink=registerlink,
        paymentname=paymentname,
        prize=prize,
        duration=duration,
        teamSize=teamSize,
        imagePath=stored.path,
        imageMimeType=stored.mime_type,
    )

    try:
        event_id = create_document("event", event)
    except Exception:
        logger.exception("Error saving event")
        delete_file(stored.path)
        raise HTTPException(status_code=500, detail="Error saving event")

    logger.info("Created event %s", event_id)
    return {"_id": event_id, **event.model_dump()}


@app.get("/api/events")
def list_events():
    require_db()
    try:
        return [jsonify(it) for it in get_documents("event")]
    except Exception:
        logger.exception("Error fetching events")
        raise HTTPException(status_code=500, detail="Error fetching events")


@app.delete("/api/events/delete/{event_id}")
def delete_event(event_id: str):
    require_db()
    if not is_valid_id(event_id):
        raise HTTPException(status_code=400, detail="Invalid ID")

    try:
        event = delete_document("event", event_id)
    except Exception:
        logger.exception("Error deleting event %s", event_id)
        raise HTTPException(status_code=500, detail="Error deleting event")

    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    # The record is gone either way; a leftover image is only logged
    delete_file(event.get("imagePath") or "")
    logger.info("Deleted event %s", event_id)
    return {"message": "Event deleted successfully"}


# Admins

class AdminPayload(BaseModel):
    name: str
    username: str
    type: AdminRole = "moderator"
    password: str


class LoginPayload(BaseModel):
    username: str
    password: str


@app.post("/api/admins", status_code=201)
def create_admin(payload: AdminPayload):
    require_db()
    admin = Admin(**payload.model_dump())

    # Read-then-write: two concurrent creates can both pass this check
    try:
        if get_document("admin", {"username": admin.username}):
            raise HTTPException(status_code=400, detail="Username already exists")
        admin_id = create_document("admin", admin)
    except HTTPException:
        logger.warning("Rejected duplicate admin username %r", admin.username)
        raise
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Username already exists")
    except Exception:
        logger.exception("Error creating admin")
        raise HTTPException(status_code=500, detail="Error creating admin")

    logger.info("Created admin %s (%s)", admin.username, admin_id)
    return {"message": "Admin created successfully", "admin": {"_id": admin_id, **admin.model_dump()}}


@app.get("/api/admins")
def list_admins():
    require_db()
    try:
        return [jsonify(it) for it in get_documents("admin")]
    except Exception:
        logger.exception("Error fetching admins")
        raise HTTPException(status_code=500, detail="Error fetching admins")


@app.post("/api/admins/edit/{admin_id}")
def edit_admin(admin_id: str, payload: AdminPayload):
    require_db()
    if not is_valid_id(admin_id):
        raise HTTPException(status_code=404, detail="Admin not found")
    admin = Admin(**payload.model_dump())

    try:
        exists = get_document("admin", {"username": admin.username})
        if exists and str(exists["_id"]) != admin_id:
            raise HTTPException(status_code=400, detail="Username already exists")
        updated = update_document("admin", admin_id, admin)
    except HTTPException:
        raise
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Username already exists")
    except Exception:
        logger.exception("Error editing admin %s", admin_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    if not updated:
        raise HTTPException(status_code=404, detail="Admin not found")
    return {"message": "Admin updated successfully", "admin": jsonify(updated)}


@app.delete("/api/admins/delete/{admin_id}")
def delete_admin(admin_id: str):
    require_db()
    try:
        deleted = delete_document("admin", admin_id)
    except Exception:
        logger.exception("Error deleting admin %s", admin_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    if not deleted:
        raise HTTPException(status_code=404, detail="Admin not found")
    logger.info("Deleted admin %s", admin_id)
    return {"message": "Admin deleted successfully"}


@app.post("/api/login")
def login(payload: LoginPayload):
    require_db()
    try:
        admin = get_document("admin", {"username": payload.username})
    except Exception:
        logger.exception("Error during login")
        raise HTTPException(status_code=500, detail={"success": False, "message": "Server error"})

    if not admin:
        logger.warning("Login attempt for unknown admin %r", payload.username)
        raise HTTPException(status_code=404, detail={"success": False, "message": "Admin not found"})
    # Plaintext comparison, exact and case-sensitive
    if admin.get("password") != payload.password:
        logger.warning("Incorrect password for admin %r", payload.username)
        raise HTTPException(status_code=401, detail={"success": False, "message": "Incorrect password"})
    return {"success": True}


# Contact us

class ContactPayload(BaseModel):
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: Optional[str] = None
    message: str = Field(..., min_length=1)


class ContactUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None


@app.post("/api/contact")
def create_contact(payload: ContactPayload):
    require_db()
    contact = Contact(**payload.model_dump(), createdAt=datetime.now(timezone.utc))
    try:
        contact_id = create_document("contact", contact)
    except Exception:
        logger.exception("Contact form submission failed")
        raise HTTPException(status_code=500, detail="Server error")

    logger.info("Stored contact message %s", contact_id)
    return {"message": "Message sent successfully!"}


@app.get("/api/contact")
def list_contacts():
    require_db()
    try:
        return [jsonify(it) for it in get_documents("contact")]
    except Exception:
        logger.exception("Error fetching contacts")
        raise HTTPException(status_code=500, detail="Server error")


@app.delete("/api/contact/delete/{contact_id}")
def delete_contact(contact_id: str):
    require_db()
    try:
        deleted = delete_document("contact", contact_id)
    except Exception:
        logger.exception("Error deleting contact %s", contact_id)
        raise HTTPException(status_code=500, detail="Server error")

    if not deleted:
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"message": "Contact deleted successfully"}


@app.post("/api/contact/{contact_id}")
def update_contact(contact_id: str, payload: ContactUpdate):
    require_db()
    # No re-validation: every editable field is overwritten, empty or not
    try:
        updated = update_document("contact", contact_id, payload.model_dump())
    except Exception:
        logger.exception("Error updating contact %s", contact_id)
        raise HTTPException(status_code=500, detail="Server error")

    if not updated:
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"message": "Contact updated successfully", "contact": jsonify(updated)}


# System data

social_links_adapter = TypeAdapter(SocialMediaLinks)
milestones_adapter = TypeAdapter(List[Milestone])
office_details_adapter = TypeAdapter(OfficeDetails)


def parse_json_field(raw: Optional[str], adapter: TypeAdapter, default):
    if raw is None or raw == "":
        return default
    return adapter.validate_json(raw)


@app.post("/system-data")
def save_system_data(
    response: Response,
    socialMediaLinks: Optional[str] = Form(None),
    milestones: Optional[str] = Form(None),
    officeDetails: Optional[str] = Form(None),
    logoName: str = Form(""),
    logo: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
):
    require_db()
    try:
        links = parse_json_field(socialMediaLinks, social_links_adapter, SocialMediaLinks())
        milestone_list = parse_json_field(milestones, milestones_adapter, [])
        office = parse_json_field(officeDetails, office_details_adapter, OfficeDetails())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"message": "Invalid system data", "errors": _error_list(e)})

    logo_path = video_path = ""
    try:
        if has_file(logo):
            logo_path = store_upload(logo).path
        if has_file(video):
            video_path = store_upload(video).path
    except HTTPException:
        delete_file(logo_path)
        raise

    now = datetime.now(timezone.utc)
    fields = dict(
        socialMediaLinks=links,
        milestones=milestone_list,
        logo=Logo(name=logoName, imagePath=logo_path),
        officeDetails=office,
        promoVideoPath=video_path,
        updatedAt=now,
    )

    # Singleton: find then replace or insert, not atomic
    try:
        existing = get_document("systemdata")
        if existing:
            data = Systemdata(**fields, createdAt=existing.get("createdAt") or now)
            replace_document("systemdata", {"_id": existing["_id"]}, data)
            logger.info("System data updated")
            response.status_code = 200
            return {"message": "System data updated"}

        create_document("systemdata", Systemdata(**fields, createdAt=now))
    except Exception:
        logger.exception("Error saving system data")
        delete_files([logo_path, video_path])
        raise HTTPException(status_code=500, detail="Server error")

    logger.info("System data created")
    response.status_code = 201
    return {"message": "System data created"}


@app.get("/system-data")
def get_system_data():
    require_db()
    try:
        return jsonify(get_document("systemdata"))
    except Exception:
        logger.exception("Error fetching system data")
        raise HTTPException(status_code=500, detail="Server error")


# Team members

class MemberPayload(BaseModel):
    name: str
    subtitle: str
    imagePath: Optional[str] = None


members_adapter = TypeAdapter(List[MemberPayload])

IMAGE_FIELD = re.compile(r"image(0|[1-9][0-9]*)")


def member_files(form) -> Dict[int, StarletteUploadFile]:
    """Map member index -> upload for form fields named image0, image1, ..."""
    files = {}
    for key, value in form.multi_items():
        match = IMAGE_FIELD.fullmatch(key)
        if match and isinstance(value, StarletteUploadFile):
            files.setdefault(int(match.group(1)), value)
    return files


def parse_team(form) -> Team:
    raw_members = form.get("members")
    if not isinstance(raw_members, str):
        raise HTTPException(status_code=400, detail={"message": "Invalid data", "error": "members is required"})
    try:
        members = members_adapter.validate_json(raw_members)
        return Team(title=form.get("title"), members=[Member(**m.model_dump(exclude_none=True)) for m in members])
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"message": "Invalid data", "errors": _error_list(e)})


def resolve_members(team: Team, files: Dict[int, StarletteUploadFile], keep_existing: bool) -> List[str]:
    """Set each member's imagePath; returns the files written for this request."""
    written = []
    try:
        # Indexes with no matching member are ignored
        for index, member in enumerate(team.members):
            upload = files.get(index)
            if upload is not None:
                stored = store_upload(upload)
                written.append(stored.path)
                member.imagePath = stored.url
            elif not keep_existing:
                member.imagePath = ""
    except HTTPException:
        delete_files(written)
        raise
    return written


def save_team(form) -> Dict:
    team = parse_team(form)
    written = resolve_members(team, member_files(form), keep_existing=False)
    try:
        team_id = create_document("team", team)
    except Exception:
        logger.exception("Error saving team")
        delete_files(written)
        raise HTTPException(status_code=500, detail="Server error")
    logger.info("Created team %s (%s)", team.title, team_id)
    return {"_id": team_id, **team.model_dump()}


def replace_team(team_id: str, form) -> Dict:
    if not is_valid_id(team_id):
        raise HTTPException(status_code=400, detail={"message": "Update failed", "error": "Invalid ID"})
    team = parse_team(form)
    written = resolve_members(team, member_files(form), keep_existing=True)
    try:
        updated = update_document("team", team_id, team)
    except Exception:
        logger.exception("Error updating team %s", team_id)
        delete_files(written)
        raise HTTPException(status_code=500, detail="Server error")
    if not updated:
        delete_files(written)
        raise HTTPException(status_code=404, detail="Team not found")
    return jsonify(updated)


@app.post("/api/team", status_code=201)
async def create_team(request: Request):
    require_db()
    form = await request.form()
    return await run_in_threadpool(save_team, form)


@app.get("/api/team")
def list_teams():
    require_db()
    try:
        return [jsonify(it) for it in get_documents("team")]
    except Exception:
        logger.exception("Error fetching teams")
        raise HTTPException(status_code=500, detail="Server error")


@app.put("/api/team/{team_id}")
async def update_team(team_id: str, request: Request):
    require_db()
    form = await request.form()
    return await run_in_threadpool(replace_team, team_id, form)


@app.delete("/api/team/{team_id}")
def delete_team(team_id: str):
    require_db()
    if not is_valid_id(team_id):
        raise HTTPException(status_code=400, detail="Invalid ID")
    # Deleting a missing team still succeeds
    try:
        delete_document("team", team_id)
    except Exception as e:
        logger.exception("Error deleting team %s", team_id)
        raise HTTPException(status_code=500, detail={"message": "Delete failed", "error": str(e)})
    return {"message": "Deleted successfully"}


@app.get("/")
def read_root():
    return {"message": "Community Site Admin API"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }

    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
            response["connection_status"] = "Connected"
            try:
                collections = database.db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"

    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
