"""Resource loading: listers and the concurrent loader fan-out."""

from kubestatus.loader.fanout import GraphLoadResult, ImageStreamLoader, ResourceLoader, default_loaders, make_graph
from kubestatus.loader.lister import KubernetesLister, ResourceLister

__all__ = [
    "GraphLoadResult",
    "ImageStreamLoader",
    "KubernetesLister",
    "ResourceLister",
    "ResourceLoader",
    "default_loaders",
    "make_graph",
]
