from pydantic import BaseModel, ConfigDict, Field

from app.services.cache_types import Airing, Occurrence, Show


class TvShowAiringResponse(BaseModel):
    """Single airing of a show"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Provider airing ID")
    season: int = Field(..., description="Season number")
    episode: int | None = Field(None, description="Episode number, if known")
    start_time: str = Field(..., alias="startTime", description="ISO8601 start time as sent by the provider")
    end_time: str = Field(..., alias="endTime", description="ISO8601 end time as sent by the provider")

    @classmethod
    def from_airing(cls, airing: Airing) -> "TvShowAiringResponse":
        return cls(
            id=airing.id,
            season=airing.season,
            episode=airing.episode,
            start_time=airing.start_time,
            end_time=airing.end_time,
        )


class TvShowResponse(BaseModel):
    """A show and every airing it had on the requested day"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Provider show ID")
    title: str
    description: str
    tv_show_airings: list[TvShowAiringResponse] = Field(..., alias="tvShowAirings")

    @classmethod
    def from_show(cls, show: Show) -> "TvShowResponse":
        airings = sorted(show.airings, key=lambda airing: (airing.start_time, airing.id))
        return cls(
            id=show.id,
            title=show.title,
            description=show.description,
            tv_show_airings=[TvShowAiringResponse.from_airing(airing) for airing in airings],
        )


class TvShowOccurrenceResponse(BaseModel):
    """How many times a show aired in the requested range"""
    id: str
    title: str
    description: str
    occurrences: int = Field(..., description="Number of airings across the range")

    @classmethod
    def from_occurrence(cls, occurrence: Occurrence) -> "TvShowOccurrenceResponse":
        return cls(
            id=occurrence.id,
            title=occurrence.title,
            description=occurrence.description,
            occurrences=occurrence.count,
        )


class ErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    model_config = ConfigDict(populate_by_name=True)

    error_id: str = Field(..., alias="errorId", description="Unique ID, also written to the log")
    technical_message: str = Field(..., alias="technicalMessage", description="Error message for developers")
    user_message: str = Field(..., alias="userMessage", description="Human-readable error message")
