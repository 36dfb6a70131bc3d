"""Content sniffing adapters"""

from .filetype_sniffer import FiletypeSniffer

__all__ = ["FiletypeSniffer"]
