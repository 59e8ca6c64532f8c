"""ZooKeeper Operator: converges ZookeeperCluster resources into live clusters."""

__version__ = "0.1.0"
