"""Constants for the ZooKeeper Operator."""

# API Group
API_GROUP = "liwang.pivotal.io"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Custom resource type
KIND_CLUSTER = "ZookeeperCluster"
PLURAL_CLUSTER = "zookeeperclusters"
SINGULAR_CLUSTER = "zookeepercluster"
SHORT_NAME_CLUSTER = "zkc"
CRD_NAME = f"{PLURAL_CLUSTER}.{API_GROUP}"

# Controller identity
CONTROLLER_NAME = "zookeeper-operator"
FIELD_MANAGER = CONTROLLER_NAME

# Child resource naming
HEADLESS_SERVICE_SUFFIX = "-headless"
CONFIG_MAP_SUFFIX = "-config"

# ZooKeeper ports
PORT_CLIENT = 2181
PORT_SERVER = 2888
PORT_LEADER_ELECTION = 3888

# Workload defaults
DEFAULT_IMAGE = "gcr.io/google_samples/k8szk:v1"
DEFAULT_REPLICAS = 3
DEFAULT_CPU = "500m"
DEFAULT_MEMORY = "200Mi"
CONTAINER_NAME = "k8szk"
DATA_VOLUME_NAME = "datadir"
DATA_MOUNT_PATH = "/var/lib/zookeeper"

# ZooKeeper tuning written to the configuration object
ZK_JVM_HEAP = "512M"
ZK_TICK_TIME = "2000"
ZK_INIT_LIMIT = "10"
ZK_SYNC_LIMIT = "5"
ZK_MAX_CLIENT_CNXNS = "60"
ZK_SNAP_RETAIN_COUNT = "3"
ZK_PURGE_INTERVAL = "1"

# Labels
LABEL_COMPONENT = "component"
LABEL_CREATOR = "creator"
LABEL_ROLE = "role"
LABEL_NAME = "name"

# Annotations
ANNOTATION_POD_INITIALIZED = "pod.alpha.kubernetes.io/initialized"

# Condition Types (custom resource definition status)
COND_ESTABLISHED = "Established"
COND_NAMES_ACCEPTED = "NamesAccepted"

# Registration timing
REGISTRATION_POLL_INTERVAL_SECONDS = 0.5
REGISTRATION_TIMEOUT_SECONDS = 60.0

# Event pipeline
PIPELINE_CAPACITY = 100

# Event types
EVENT_ADDED = "Added"
EVENT_UPDATED = "Updated"
EVENT_DELETED = "Deleted"
