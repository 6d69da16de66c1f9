"""CSV data loading for the command line tools."""

from Market_Health.data.csv_loader import (
    CsvQuotationProvider,
    frame_to_quotations,
    load_histories,
    load_history,
    read_quotation_frame,
)

__all__ = [
    "CsvQuotationProvider",
    "frame_to_quotations",
    "load_histories",
    "load_history",
    "read_quotation_frame",
]
