from asngen.web.routers.asn import router as asn_router
from asngen.web.routers.namespaces import router as namespaces_router
from asngen.web.routers.stats import router as stats_router

__all__ = [
    "asn_router",
    "namespaces_router",
    "stats_router",
]
