"""Routing request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.domain import BulkRequest, Destination, GeoPoint


class PointModel(BaseModel):
    """A point given either as ``{"lat": .., "lon": ..}`` or GeoJSON-style ``[lon, lat]``."""

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)

    @model_validator(mode="before")
    @classmethod
    def _from_geojson_array(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            if len(value) < 2:
                raise ValueError("A point array needs [longitude, latitude]")
            return {"lon": value[0], "lat": value[1]}
        return value

    def to_geo_point(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


class RouteRequestBody(BaseModel):
    """JSON body of ``POST /route``. Fields not listed here are kept as routing hints."""

    model_config = ConfigDict(extra="allow")

    points: List[PointModel] = Field(default_factory=list)
    profile: Optional[str] = None
    algorithm: str = ""
    locale: str = "en"
    headings: List[float] = Field(default_factory=list)
    point_hints: List[str] = Field(default_factory=list)
    curbsides: List[str] = Field(default_factory=list)
    snap_preventions: Optional[List[str]] = Field(
        default=None,
        description="Road classes to avoid when snapping. Omit for the server default, [] for none.",
    )
    details: List[str] = Field(default_factory=list, description="Requested path details.")
    custom_model: Optional[Dict[str, Any]] = None


class DestinationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    destination_point: PointModel = Field(alias="destinationPoint")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        if value is None:
            raise ValueError("Destination id is required")
        return str(value)


class BulkRouteRequestBody(BaseModel):
    """JSON body of ``POST /route/bulk``: one origin against many destinations."""

    model_config = ConfigDict(populate_by_name=True)

    origin_point: Optional[PointModel] = Field(default=None, alias="originPoint")
    destinations: List[DestinationModel] = Field(default_factory=list)

    def to_domain(self) -> BulkRequest:
        return BulkRequest(
            origin=self.origin_point.to_geo_point() if self.origin_point else None,
            destinations=[
                Destination(id=destination.id, point=destination.destination_point.to_geo_point())
                for destination in self.destinations
            ],
        )


class BulkResultModel(BaseModel):
    id: str
    distance: Optional[float] = None
    time: Optional[int] = None
    error: Optional[str] = None


class BulkInfoModel(BaseModel):
    copyrights: List[str]


class BulkRouteResponse(BaseModel):
    info: BulkInfoModel
    data: List[BulkResultModel]
