from __future__ import annotations
import math
from typing import Any, Dict, List, Literal, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..models import Bundle
from ..services.storage import S3BundleStorage, StorageError, get_storage

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix=f"{settings.admin_prefix}/bundles",
    tags=["bundles"],
)


class BundleSchema(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    platform: Literal["ios", "android"]
    should_force_update: bool = False
    enabled: bool = True
    file_hash: str = Field(max_length=255)
    git_commit_hash: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None
    channel: str = Field(default="production", min_length=1, max_length=255)
    storage_uri: str
    target_app_version: Optional[str] = Field(default=None, max_length=255)
    fingerprint_hash: Optional[str] = Field(default=None, max_length=255)
    bundle_metadata: Dict[str, Any] = Field(default_factory=dict, alias="metadata")

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @classmethod
    def from_row(cls, row: Bundle) -> "BundleSchema":
        return cls(
            id=row.id,
            platform=row.platform,
            should_force_update=row.should_force_update,
            enabled=row.enabled,
            file_hash=row.file_hash,
            git_commit_hash=row.git_commit_hash,
            message=row.message,
            channel=row.channel,
            storage_uri=row.storage_uri,
            target_app_version=row.target_app_version,
            fingerprint_hash=row.fingerprint_hash,
            bundle_metadata=row.bundle_metadata or {},
        )

    def column_values(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=False)


class Pagination(BaseModel):
    total: int
    has_next_page: bool
    has_previous_page: bool
    current_page: int
    total_pages: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class BundleList(BaseModel):
    data: List[BundleSchema]
    pagination: Pagination


@router.get("/channels")
def list_channels(db: Session = Depends(get_db)) -> Dict[str, List[str]]:
    rows = db.query(Bundle.channel).distinct().order_by(Bundle.channel).all()
    return {"channels": [r[0] for r in rows]}


@router.get("", response_model=BundleList)
def list_bundles(
    channel: Optional[str] = None,
    platform: Optional[Literal["ios", "android"]] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    q = db.query(Bundle)
    if channel:
        q = q.filter(Bundle.channel == channel)
    if platform:
        q = q.filter(Bundle.platform == platform)

    total = q.with_entities(func.count(Bundle.id)).scalar() or 0
    rows = q.order_by(Bundle.id.desc()).offset(offset).limit(limit).all()

    return BundleList(
        data=[BundleSchema.from_row(r) for r in rows],
        pagination=Pagination(
            total=total,
            has_next_page=offset + limit < total,
            has_previous_page=offset > 0,
            current_page=offset // limit + 1,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/{bundle_id}", response_model=BundleSchema)
def get_bundle(bundle_id: str, db: Session = Depends(get_db)):
    row = db.get(Bundle, bundle_id)
    if not row:
        raise HTTPException(status_code=404, detail="Bundle not found")
    return BundleSchema.from_row(row)


@router.post("", status_code=201)
def upsert_bundles(body: List[BundleSchema], db: Session = Depends(get_db)) -> Dict[str, bool]:
    if not body:
        raise HTTPException(status_code=400, detail="Request body must contain at least one bundle")

    # a repeated id within one request keeps its last occurrence
    items = {b.id: b for b in body}
    for item in items.values():
        values = item.column_values()
        row = db.get(Bundle, item.id)
        if row:
            for key, value in values.items():
                setattr(row, key, value)
        else:
            row = Bundle(**values)
        db.add(row)
    db.commit()

    logger.info("bundles_upserted", count=len(items), bundle_ids=list(items))
    return {"success": True}


@router.delete("/{bundle_id}")
def delete_bundle(
    bundle_id: str,
    db: Session = Depends(get_db),
    storage: S3BundleStorage = Depends(get_storage),
) -> Dict[str, bool]:
    row = db.get(Bundle, bundle_id)
    if not row:
        raise HTTPException(status_code=404, detail="Bundle not found")

    try:
        storage.delete(row.storage_uri)
    except StorageError as e:
        logger.error("bundle_storage_delete_failed", bundle_id=bundle_id, error=str(e))
        raise HTTPException(status_code=502, detail=str(e))

    db.delete(row)
    db.commit()
    logger.info("bundle_deleted", bundle_id=bundle_id)
    return {"success": True}
