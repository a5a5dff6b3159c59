"""
app/domain/import_specs.py

Row specs for the seven importable stock data tables.
"""

from __future__ import annotations

from app.domain.stock_import import (
    MB,
    SYMBOL_MAX_LENGTH,
    ColumnKind,
    ImportRowSpec,
    NumericLocale,
)

_S = ColumnKind.SYMBOL
_T = ColumnKind.TEXT
_N = ColumnKind.NUMERIC
_D = ColumnKind.DATE

STOCKS = ImportRowSpec(
    domain="stocks",
    slug="stocks",
    table_name="stocks",
    columns=(
        ("symbol", _S),
        ("date", _D),
        ("open", _N),
        ("high", _N),
        ("low", _N),
        ("close", _N),
        ("band_dow", _N),
        ("band_up", _N),
        ("trend_q", _N),
        ("fq", _N),
        ("qv1", _N),
    ),
    natural_key=("symbol", "date"),
    numeric_locale=NumericLocale.VIETNAMESE,
)

STOCK_INFO = ImportRowSpec(
    domain="stock_info",
    slug="stock-info",
    table_name="stock_info",
    columns=(
        ("symbol", _S),
        ("name", _T),
        ("description", _T),
    ),
    natural_key=("symbol",),
    required_fields=("name",),
    requires_registered_symbol=False,
    max_lengths=(("symbol", SYMBOL_MAX_LENGTH), ("name", 255)),
    max_upload_bytes=5 * MB,
)

STOCK_DAILY = ImportRowSpec(
    domain="stock_daily",
    slug="stock-daily",
    table_name="stock_daily",
    columns=(
        ("symbol", _S),
        ("close_price", _N),
        ("return_value", _N),
        ("kldd", _N),
        ("von_hoa", _N),
        ("pe", _N),
        ("roa", _N),
        ("roe", _N),
        ("eps", _N),
    ),
    natural_key=("symbol",),
    required_fields=("close_price",),
)

STOCK_ASSETS = ImportRowSpec(
    domain="stock_assets",
    slug="stock-assets",
    table_name="stock_assets",
    columns=(
        ("symbol", _S),
        ("date", _D),
        ("tts", _N),
        ("vcsh", _N),
        ("tb_tts_nganh", _N),
    ),
    natural_key=("symbol", "date"),
)

STOCK_EPS = ImportRowSpec(
    domain="stock_eps",
    slug="stock-eps",
    table_name="stock_eps",
    columns=(
        ("symbol", _S),
        ("date", _D),
        ("eps", _N),
        ("eps_nganh", _N),
    ),
    natural_key=("symbol", "date"),
)

STOCK_METRICS = ImportRowSpec(
    domain="stock_metrics",
    slug="stock-metrics",
    table_name="stock_metrics",
    columns=(
        ("symbol", _S),
        ("date", _D),
        ("roa", _N),
        ("roe", _N),
        ("tb_roa_nganh", _N),
        ("tb_roe_nganh", _N),
    ),
    natural_key=("symbol", "date"),
)

STOCK_PE = ImportRowSpec(
    domain="stock_pe",
    slug="stock-pe",
    table_name="stock_pe",
    columns=(
        ("symbol", _S),
        ("date", _D),
        ("pe", _N),
        ("pe_nganh", _N),
    ),
    natural_key=("symbol", "date"),
)

IMPORT_ROW_SPECS: tuple[ImportRowSpec, ...] = (
    STOCKS,
    STOCK_INFO,
    STOCK_DAILY,
    STOCK_ASSETS,
    STOCK_EPS,
    STOCK_METRICS,
    STOCK_PE,
)

_BY_NAME: dict[str, ImportRowSpec] = {}
for _spec in IMPORT_ROW_SPECS:
    _BY_NAME[_spec.domain] = _spec
    _BY_NAME[_spec.slug] = _spec


def get_import_row_spec(name: str) -> ImportRowSpec:
    """
    Look up a spec by domain name ("stock_pe") or URL slug ("stock-pe").
    """

    key = name.strip().lower()
    try:
        return _BY_NAME[key]
    except KeyError:
        known = ", ".join(spec.slug for spec in IMPORT_ROW_SPECS)
        raise KeyError(f"Unknown stock data domain {name!r}. Known: {known}.") from None
