"""Pydantic models for catalog products, view states and render snapshots."""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .utils import normalize_query

UNNAMED_PRODUCT = "Unnamed Product"
NO_INGREDIENTS = "No ingredients listed"
APP_TITLE = "OpenFoodFacts Viewer"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SearchQuery(_Frozen):
    text: str = Field(..., min_length=1)

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["SearchQuery"]:
        """Return ``None`` for blank input instead of raising."""
        text = normalize_query(raw)
        return cls(text=text) if text else None


class ProductSummary(_Frozen):
    code: str = Field(..., min_length=1, description="Catalog identifier")
    name: str = UNNAMED_PRODUCT


class ProductDetail(_Frozen):
    code: str = Field(..., min_length=1, description="Catalog identifier")
    name: str = UNNAMED_PRODUCT
    ingredients: str = NO_INGREDIENTS


class Idle(_Frozen):
    kind: Literal["idle"] = "idle"


class Searching(_Frozen):
    kind: Literal["searching"] = "searching"
    query: str


class Results(_Frozen):
    kind: Literal["results"] = "results"
    query: str
    products: Tuple[ProductSummary, ...] = ()


class ResultsError(_Frozen):
    kind: Literal["results_error"] = "results_error"
    query: str
    message: str


class LoadingDetail(_Frozen):
    kind: Literal["loading_detail"] = "loading_detail"
    code: str


class Details(_Frozen):
    kind: Literal["details"] = "details"
    detail: ProductDetail


class DetailError(_Frozen):
    kind: Literal["detail_error"] = "detail_error"
    code: str
    message: str


ViewState = Annotated[
    Union[Idle, Searching, Results, ResultsError, LoadingDetail, Details, DetailError],
    Field(discriminator="kind"),
]

LOADING_STATES = (Searching, LoadingDetail)
DETAIL_STATES = (LoadingDetail, Details, DetailError)


def _describe(state: ViewState) -> tuple[str, str]:
    if isinstance(state, Searching):
        return f"Searching for '{state.query}'", "Loading..."
    if isinstance(state, Results):
        if not state.products:
            return "Search Results", f"No products found for '{state.query}'"
        return "Search Results", f"{len(state.products)} products found for '{state.query}'"
    if isinstance(state, ResultsError):
        return "Search Results", f"Error: {state.message}"
    if isinstance(state, LoadingDetail):
        return f"Product {state.code}", "Loading..."
    if isinstance(state, Details):
        return state.detail.name, f"Ingredients: {state.detail.ingredients}"
    if isinstance(state, DetailError):
        return f"Product {state.code}", f"Error: {state.message}"
    return APP_TITLE, "Enter a search term to find products."


class Snapshot(_Frozen):
    """Everything a presentation layer needs to draw one frame."""

    state: ViewState
    generation: int
    is_loading: bool
    can_go_back: bool
    title: str
    status_text: str

    @classmethod
    def from_state(cls, state: ViewState, *, generation: int, can_go_back: bool) -> "Snapshot":
        title, status_text = _describe(state)
        return cls(
            state=state,
            generation=generation,
            is_loading=isinstance(state, LOADING_STATES),
            can_go_back=can_go_back,
            title=title,
            status_text=status_text,
        )


class SearchRequest(BaseModel):
    q: str = Field(..., description="Search term")


class SelectRequest(BaseModel):
    code: str = Field(..., description="Catalog identifier of the product to open")
