"""Query helpers shared by the repositories."""

BATCH_SIZE = 100


def fetch_all(queryset, batch_size: int = BATCH_SIZE) -> list:
    """Every record matching ``queryset``, read in batches.

    A QuerySet evaluates to at most the aggregate's ``limit`` rows (100 unless
    configured), so reports and listings that need the full set walk the
    results with offsets until the reported total is reached.
    """
    records = []
    offset = 0
    while True:
        result = queryset.limit(batch_size).offset(offset).all()
        records.extend(result.items)
        offset += batch_size
        if not result.items or offset >= result.total:
            return records
