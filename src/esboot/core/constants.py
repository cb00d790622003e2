"""
esboot Constants

All limits are explicit, named with units, big-endian naming convention.
Category comes first, specifics last: MEMORY_ES_BYTES_MAX not MAX_ES_MEMORY.
"""

# =============================================================================
# Memory Units
# =============================================================================

MEMORY_MIB_BYTES: int = 1024 * 1024
MEMORY_GIB_BYTES: int = 1024 * MEMORY_MIB_BYTES

# =============================================================================
# Heap Sizing
# =============================================================================

# Heaps past ~32-64GB lose compressed oops and gain nothing.
# ref. https://www.elastic.co/guide/en/elasticsearch/guide/current/heap-sizing.html
MEMORY_ES_BYTES_MAX: int = 64 * MEMORY_GIB_BYTES
MEMORY_ES_BYTES_MIN: int = 256 * MEMORY_MIB_BYTES

# Half of the memory goes to the heap, the rest to Lucene via the page cache.
MEMORY_HEAP_DIVISOR: int = 2

RAM_SPEC_PATTERN: str = r"([0-9]+)([GgMm])i?"  # matched whole, ASCII digits only

# =============================================================================
# cgroup Memory Limit Sources
# =============================================================================

CGROUP_V1_MEMORY_LIMIT_PATH: str = "/sys/fs/cgroup/memory/memory.limit_in_bytes"
CGROUP_V2_MEMORY_LIMIT_PATH: str = "/sys/fs/cgroup/memory.max"
CGROUP_MEMORY_LIMIT_PATHS: tuple[str, ...] = (
    CGROUP_V1_MEMORY_LIMIT_PATH,
    CGROUP_V2_MEMORY_LIMIT_PATH,
)
CGROUP_MEMORY_UNLIMITED_BYTES: int = 2**63 - 1  # cgroup v2 reports "max"

# =============================================================================
# Readiness Polling
# =============================================================================

READINESS_RETRY_COUNT_DEFAULT: int = 300
READINESS_RETRY_INTERVAL_SECS_DEFAULT: int = 1
READINESS_STATUS_CODE: int = 200

# =============================================================================
# Index Templates
# =============================================================================

TEMPLATE_GLOB_DEFAULT: str = "*.json"
TEMPLATE_PRIMARY_SHARDS_PLACEHOLDER: str = "$PRIMARY_SHARDS"
TEMPLATE_REPLICA_SHARDS_PLACEHOLDER: str = "$REPLICA_SHARDS"
TEMPLATE_PRIMARY_SHARDS_DEFAULT: int = 1
TEMPLATE_REPLICA_SHARDS_DEFAULT: int = 0

# =============================================================================
# TLS Secret Layout
# =============================================================================

SECRET_CA_FILENAME: str = "admin-ca"
SECRET_CERT_FILENAME: str = "admin-cert"
SECRET_KEY_FILENAME: str = "admin-key"

# =============================================================================
# Server Launch
# =============================================================================

ROLE_MAPPING_RELATIVE_PATH: str = "sgconfig/sg_roles_mapping.yml"
PROMETHEUS_USER_DEFAULT: str = "system:serviceaccount:prometheus:prometheus"
SEARCH_GUARD_LICENSE_DISPLAY_OPT: str = "-Dsg.display_lic_none=false"
