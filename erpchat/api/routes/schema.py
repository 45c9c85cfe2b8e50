"""Schema directory route."""

from fastapi import APIRouter

from erpchat.models.api import SchemaResponse, SchemaTable

router = APIRouter()


@router.get("/schema", response_model=SchemaResponse)
async def get_schema() -> SchemaResponse:
    """List known DocTypes and any field definitions fetched so far."""
    from erpchat.api.main import get_session

    directory = get_session().directory
    return SchemaResponse(
        mode="demo" if directory.is_demo else "connected",
        tables=[
            SchemaTable(name=entry.name, loaded=entry.is_loaded, fields=list(entry.fields))
            for entry in directory.entries
        ],
    )
