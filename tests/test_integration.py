import os

import pytest

from sdpraster.catalog import load_catalog
from sdpraster.raster import get_raster

pytestmark = pytest.mark.integration

RUN_INTEGRATION = os.getenv("SDPRASTER_RUN_INTEGRATION") == "1"
CATALOG_LOCATION = os.getenv("SDPRASTER_CATALOG")


@pytest.mark.skipif(
    not (RUN_INTEGRATION and CATALOG_LOCATION),
    reason="Set SDPRASTER_RUN_INTEGRATION=1 and SDPRASTER_CATALOG to run live catalog tests",
)
def test_open_remote_yearly_dataset_lazily():
    catalog = load_catalog(CATALOG_LOCATION)
    yearly = catalog.filter(timeseries_types=["Yearly"])
    if yearly.empty:
        pytest.skip("Catalog has no Yearly datasets")
    record = catalog.record(yearly["CatalogID"].iloc[0])
    handle = get_raster(record.catalog_id, catalog=catalog, years=[record.min_year])
    assert handle.nlayers == 1
    assert handle.labels == (str(record.min_year),)
    assert handle.crs is not None
