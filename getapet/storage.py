# getapet/storage.py
from pathlib import Path
from typing import Iterable, List, Sequence
from urllib.parse import urlparse
from uuid import uuid4
import logging

import aiofiles
from fastapi import UploadFile

from .errors import DependencyFailure, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
}
CHUNK_SIZE = 1024 * 1024


def _extension(upload: UploadFile) -> str:
    ext = Path(upload.filename or "").suffix.lower()
    if ext in {".png", ".jpg", ".jpeg"}:
        return ext
    return ALLOWED_TYPES[upload.content_type]


class LocalImageStore:
    """
    Guarda imagens enviadas em ``<media_dir>/<area>/`` e devolve as URLs
    públicas servidas em ``/media``.

    Um lote é tudo-ou-nada: se uma escrita falhar, os arquivos já gravados
    naquele lote são removidos antes de levantar ``DependencyFailure``.
    """

    def __init__(self, media_dir: str, area: str = "pets"):
        self.media_dir = Path(media_dir)
        self.area = area

    def validate(self, uploads: Sequence[UploadFile]) -> None:
        for upload in uploads:
            if (upload.content_type or "").lower() not in ALLOWED_TYPES:
                raise ValidationError("Por favor, envie apenas jpg ou png!", field="images")

    async def save(self, uploads: Sequence[UploadFile]) -> List[str]:
        self.validate(uploads)
        stored: List[str] = []
        target_dir = self.media_dir / self.area
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            for upload in uploads:
                filename = f"{uuid4().hex}{_extension(upload)}"
                rel_path = Path(self.area) / filename
                async with aiofiles.open(self.media_dir / rel_path, "wb") as out:
                    while chunk := await upload.read(CHUNK_SIZE):
                        await out.write(chunk)
                stored.append(f"/media/{rel_path.as_posix()}")
        except OSError as exc:
            logger.exception("Falha ao gravar imagens em %s", target_dir)
            await self.discard(stored)
            raise DependencyFailure() from exc
        return stored

    async def discard(self, refs: Iterable[str]) -> None:
        for ref in refs:
            try:
                path = self.media_dir / Path(urlparse(ref).path).relative_to("/media")
                path.unlink(missing_ok=True)
            except (OSError, ValueError):
                logger.warning("Não foi possível remover a imagem %s", ref)
