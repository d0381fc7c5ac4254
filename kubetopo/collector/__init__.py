"""Collector package for kubetopo.

Produces the topology model from one of two sources, both feeding the same
TopologyBuilder.

Submodules
----------
reader   -- ClusterReader protocol and KubernetesReader (kubernetes-asyncio).
fetcher  -- TopologyFetcher: live snapshot with namespace selection policy.
fixtures -- FixtureParser: multi-document YAML manifests, one namespace.
"""

from kubetopo.collector.fetcher import TopologyFetcher
from kubetopo.collector.fixtures import FixtureParser
from kubetopo.collector.reader import ClusterReader, KubernetesReader

__all__ = ["ClusterReader", "FixtureParser", "KubernetesReader", "TopologyFetcher"]
