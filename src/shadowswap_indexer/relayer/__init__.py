"""Relayer integration: payload signing and delivery."""

from shadowswap_indexer.relayer.client import RelayerDeliveryClient

__all__ = ["RelayerDeliveryClient"]
