"""Album detail enrichment: description, release date and play counts.

Detail is optional decoration on an already ranked chart entry, so a failed
lookup returns the album unchanged along with the error instead of raising.
"""

from attrs import define, field

from vinylogue.config import get_logger
from vinylogue.domain.entities import Album, FetchStage
from vinylogue.domain.errors import VinylogueError
from vinylogue.domain.repositories import ChartGatewayProtocol

logger = get_logger(__name__).bind(service="album_detail")


@define(frozen=True, slots=True)
class LoadAlbumDetailCommand:
    album: Album
    user_name: str | None = None


@define(frozen=True, slots=True)
class AlbumDetailResult:
    album: Album
    error: VinylogueError | None = field(default=None, eq=False)
    stage: FetchStage = FetchStage.ALBUM_DETAIL

    @property
    def succeeded(self) -> bool:
        return self.error is None


@define(slots=True)
class LoadAlbumDetailUseCase:
    gateway: ChartGatewayProtocol

    async def execute(self, command: LoadAlbumDetailCommand) -> AlbumDetailResult:
        album = command.album
        if album.detail_loaded:
            return AlbumDetailResult(album=album)

        with logger.contextualize(album=album.name, artist=album.artist.name):
            try:
                detailed = await self.gateway.fetch_album_detail(
                    album, user_name=command.user_name
                )
            except VinylogueError as e:
                logger.warning(f"Album detail unavailable: {e}")
                return AlbumDetailResult(album=album, error=e)

            # Keep artwork resolved earlier when the detail payload has none
            if not detailed.image_url and album.image_url:
                detailed = detailed.with_image(album.image_url)

            logger.debug("Album detail loaded", has_about=bool(detailed.about))
            return AlbumDetailResult(album=detailed)
