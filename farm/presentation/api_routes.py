from typing import Final

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..application.allocator import BarnSummary, FarmAllocator
from ..domain.constants import MAX_NAME_LENGTH
from ..domain.entities import Animal, Color
from ..infrastructure.database.database import get_session

api_router: Final = APIRouter(
    prefix="/api/v1",
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        404: {"description": "Not Found - Animal does not exist"},
        500: {"description": "Internal Error - Operation rolled back"},
    },
)


def get_allocator(session: Session = Depends(get_session)) -> FarmAllocator:
    return FarmAllocator(session)


# Request Models
class AnimalCreate(BaseModel):
    """Request model for adding an animal to the farm."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_NAME_LENGTH,
        description="Name of the animal",
        examples=["Daisy", "Clarabelle"],
    )
    favorite_color: Color = Field(
        ..., description="Favorite color; decides which barns the animal may live in"
    )

    def to_domain(self) -> Animal:
        return Animal(
            id=None, name=self.name.strip(), favorite_color=self.favorite_color
        )


class AnimalIds(BaseModel):
    """Request model for removing several animals."""

    ids: list[int] = Field(
        ..., min_length=1, description="Animal ids, removed in this order"
    )


# Response Models
class AnimalResponse(BaseModel):
    """Animal information returned by the API."""

    id: int = Field(description="Unique animal identifier")
    name: str = Field(description="Animal name")
    favorite_color: Color = Field(description="Favorite color")
    barn_id: int | None = Field(description="Barn the animal lives in, if any")

    @classmethod
    def from_domain(cls, animal: Animal) -> "AnimalResponse":
        return cls(
            id=animal.id or 0,
            name=animal.name,
            favorite_color=animal.favorite_color,
            barn_id=animal.barn_id,
        )


class AnimalListResponse(BaseModel):
    animals: list[AnimalResponse] = Field(description="Animals ordered by id")


class BarnResponse(BaseModel):
    """Barn information with its current occupancy."""

    id: int = Field(description="Unique barn identifier")
    name: str = Field(description="Barn name, e.g. RED0")
    color: Color = Field(description="Color of every animal in this barn")
    size: int = Field(description="Number of animals in the barn")
    capacity: int = Field(description="Maximum number of animals")

    @classmethod
    def from_summary(cls, summary: BarnSummary, capacity: int) -> "BarnResponse":
        return cls(
            id=summary.barn.id or 0,
            name=summary.barn.name,
            color=summary.barn.color,
            size=summary.size,
            capacity=capacity,
        )


class BarnListResponse(BaseModel):
    barns: list[BarnResponse] = Field(description="Barns ordered by id")


class RemovalResponse(BaseModel):
    removed: list[AnimalResponse] = Field(description="Animals that were removed")
    message: str = Field(description="Result message")


class ClearResponse(BaseModel):
    removed_count: int = Field(description="Number of animals removed")
    message: str = Field(description="Result message")


@api_router.get(
    "/animals",
    response_model=AnimalListResponse,
    tags=["animals"],
    summary="List all animals",
)
async def api_list_animals(
    *, allocator: FarmAllocator = Depends(get_allocator)
) -> AnimalListResponse:
    return AnimalListResponse(
        animals=[AnimalResponse.from_domain(a) for a in allocator.find_all()]
    )


@api_router.post(
    "/animals",
    response_model=AnimalResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["animals"],
    summary="Add an animal to the farm",
    description="""
    Place a new animal into a barn of its favorite color.

    The animal joins the emptiest barn of its color. When no barn exists yet,
    or every barn of the color is full, a new barn is built and the color's
    animals are spread evenly across all of its barns.
    """,
)
async def api_add_animal(
    *, allocator: FarmAllocator = Depends(get_allocator), animal: AnimalCreate
) -> AnimalResponse:
    return AnimalResponse.from_domain(allocator.add_animal(animal.to_domain()))


@api_router.post(
    "/animals/batch",
    response_model=AnimalListResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["animals"],
    summary="Add several animals",
    description="Animals are placed one after another, in the order given.",
)
async def api_add_animals(
    *, allocator: FarmAllocator = Depends(get_allocator), animals: list[AnimalCreate]
) -> AnimalListResponse:
    placed = allocator.add_animals([a.to_domain() for a in animals])
    return AnimalListResponse(animals=[AnimalResponse.from_domain(a) for a in placed])


@api_router.delete(
    "/animals/{animal_id}",
    response_model=RemovalResponse,
    tags=["animals"],
    summary="Remove an animal",
    description="""
    Remove an animal and reorganize the remaining barns of its color.

    A barn that can be absorbed by the other barns of its color is torn down
    and its animals are placed again.
    """,
)
async def api_remove_animal(
    *,
    allocator: FarmAllocator = Depends(get_allocator),
    animal_id: int = Path(..., ge=1, description="Animal id"),
) -> RemovalResponse:
    removed = allocator.remove_animal(animal_id)
    return RemovalResponse(
        removed=[AnimalResponse.from_domain(removed)],
        message=f"Animal '{removed.name}' removed",
    )


@api_router.post(
    "/animals/remove",
    response_model=RemovalResponse,
    tags=["animals"],
    summary="Remove several animals",
    description="Animals are removed by id, in the order given. "
    + "An unknown id aborts the whole request.",
)
async def api_remove_animals(
    *, allocator: FarmAllocator = Depends(get_allocator), body: AnimalIds
) -> RemovalResponse:
    removed = allocator.remove_animals(body.ids)
    return RemovalResponse(
        removed=[AnimalResponse.from_domain(a) for a in removed],
        message=f"{len(removed)} animals removed",
    )


@api_router.delete(
    "/animals",
    response_model=ClearResponse,
    tags=["animals"],
    summary="Remove every animal and barn",
)
async def api_delete_all(
    *, allocator: FarmAllocator = Depends(get_allocator)
) -> ClearResponse:
    removed_count = allocator.delete_all()
    return ClearResponse(removed_count=removed_count, message="Farm cleared")


@api_router.get(
    "/barns",
    response_model=BarnListResponse,
    tags=["barns"],
    summary="List barns with their occupancy",
)
async def api_list_barns(
    *, allocator: FarmAllocator = Depends(get_allocator)
) -> BarnListResponse:
    return BarnListResponse(
        barns=[
            BarnResponse.from_summary(summary, allocator.capacity)
            for summary in allocator.find_barns()
        ]
    )


@api_router.get("/health", tags=["health"], summary="Liveness check")
async def api_health() -> dict[str, str]:
    return {"status": "ok"}
