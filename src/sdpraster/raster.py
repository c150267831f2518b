"""Resolve a dataset source into an opened multi-layer raster handle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Sequence, Union

from sdpraster.backends.base import (
    DownloadIncomplete,
    DownloadService,
    RasterBackend,
    RasterHandle,
)
from sdpraster.backends.download import HttpDownloader
from sdpraster.backends.rio_backend import RioxarrayBackend
from sdpraster.catalog import Catalog, load_catalog
from sdpraster.config import get_crs, get_download_dir
from sdpraster.errors import UnsupportedSelection, UsageError
from sdpraster.templates import expand
from sdpraster.temporal import Resolution, TemporalSelection, resolve, single_label

LOGGER = logging.getLogger("sdpraster.raster")


@dataclass(frozen=True)
class ByCatalogId:
    """A dataset named by its catalog id."""

    catalog_id: str


@dataclass(frozen=True)
class ByUrl:
    """A dataset addressed directly by an ``https://`` URL."""

    url: str


Source = Union[ByCatalogId, ByUrl]


def source_from_args(catalog_id: str | None = None, url: str | None = None) -> Source:
    """Turn the ``catalog_id``/``url`` keyword pair into exactly one :data:`Source`."""

    if catalog_id is not None and url is not None:
        raise UsageError("Specify either a catalog id or a URL, not both")
    if catalog_id is not None:
        if not isinstance(catalog_id, str):
            raise UsageError("catalog_id must be a string")
        return ByCatalogId(catalog_id)
    if url is not None:
        if not isinstance(url, str) or not url.startswith("https://"):
            raise UsageError("A valid URL must start with 'https://'")
        return ByUrl(url)
    raise UsageError("You must specify either a dataset catalog id or a URL")


def assemble(
    locators: Sequence[str],
    labels: Sequence[str],
    *,
    crs: str | None = None,
    scale: float = 1.0,
    offset: float = 0.0,
    download_path: Path | None = None,
    overwrite: bool = False,
    resume: bool = True,
    backend: RasterBackend | None = None,
    downloader: DownloadService | None = None,
    resolution: Resolution | None = None,
) -> RasterHandle:
    """
    Open ``locators`` as one raster whose layers are named by ``labels``.

    With ``download_path`` set, every locator is first copied locally and the
    local copies are opened; otherwise locators are opened remotely without
    fetching pixel data.
    """

    if len(locators) != len(labels):
        raise UsageError(f"Got {len(locators)} locators for {len(labels)} labels")
    backend = backend or RioxarrayBackend()

    if download_path is not None:
        downloader = downloader or HttpDownloader()
        LOGGER.info("Downloading %d files to %s", len(locators), download_path)
        results = downloader.download(locators, Path(download_path), overwrite=overwrite, resume=resume)
        failures = [result for result in results if not result.success]
        if failures or len(results) != len(locators):
            raise DownloadIncomplete(
                f"{len(failures)} of {len(locators)} files failed to download: "
                + ", ".join(result.locator for result in failures),
                failures,
            )
        data = backend.open([str(result.local_path) for result in results], labels, remote=False)
    else:
        data = backend.open(locators, labels, remote=True)

    if crs:
        data = data.rio.write_crs(crs)
    handle = RasterHandle(
        data=data,
        locators=tuple(locators),
        scale=scale,
        offset=offset,
        resolution=resolution,
    )
    LOGGER.info("Returning dataset with %d layers", handle.nlayers)
    return handle


def get_raster(
    catalog_id: str | None = None,
    url: str | None = None,
    *,
    catalog: Catalog | None = None,
    years: Iterable[int] | int | None = None,
    months: Iterable[int] | int | None = None,
    date_start: date | str | None = None,
    date_end: date | str | None = None,
    download_files: bool = False,
    download_path: Path | str | None = None,
    overwrite: bool = False,
    resume: bool = True,
    backend: RasterBackend | None = None,
    downloader: DownloadService | None = None,
) -> RasterHandle:
    """
    Return a handle to one dataset, by catalog id or direct URL.

    Time-series datasets are assembled from one file per retained time step.
    The catalog is loaded from configuration when not given.
    """

    source = source_from_args(catalog_id, url)
    selection = TemporalSelection.build(years=years, months=months, date_start=date_start, date_end=date_end)
    destination = None
    if download_files:
        destination = Path(download_path) if download_path is not None else get_download_dir()

    if isinstance(source, ByUrl):
        if not selection.is_empty:
            raise UnsupportedSelection("Temporal selection requires a catalog id, not a URL")
        label = single_label(source.url)
        return assemble(
            [source.url],
            [label],
            download_path=destination,
            overwrite=overwrite,
            resume=resume,
            backend=backend,
            downloader=downloader,
            resolution=Resolution(cadence="Single", labels=(label,), dates=(None,)),
        )

    catalog = catalog or load_catalog()
    record = catalog.record(source.catalog_id)
    if record.deprecated:
        LOGGER.warning("Dataset %s is deprecated; a newer version may be available", record.catalog_id)
    resolution = resolve(record, selection)
    locators = expand(record.template, resolution.labels, record.cadence)
    return assemble(
        locators,
        resolution.labels,
        crs=get_crs(),
        scale=record.scale,
        offset=record.offset,
        download_path=destination,
        overwrite=overwrite,
        resume=resume,
        backend=backend,
        downloader=downloader,
        resolution=resolution,
    )
