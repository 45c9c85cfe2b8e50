"""
Memory Routes

Long-term memory facts included in every reasoning request.
"""

from fastapi import APIRouter, HTTPException, status

from erpchat.models.api import MemoryRequest, MemoryResponse

router = APIRouter()


@router.get("/memory", response_model=MemoryResponse)
async def list_memory() -> MemoryResponse:
    from erpchat.api.main import get_session

    return MemoryResponse(memory=get_session().memory)


@router.post("/memory", response_model=MemoryResponse, status_code=status.HTTP_201_CREATED)
async def add_memory(request: MemoryRequest) -> MemoryResponse:
    from erpchat.api.main import get_session

    try:
        memory = get_session().add_memory(request.fact)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MemoryResponse(memory=memory)


@router.delete("/memory/{index}", response_model=MemoryResponse)
async def remove_memory(index: int) -> MemoryResponse:
    from erpchat.api.main import get_session

    session = get_session()
    try:
        session.remove_memory(index)
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MemoryResponse(memory=session.memory)
