"""Starknet integration components."""

from shadowswap_indexer.starknet.classifier import EventClassifier
from shadowswap_indexer.starknet.decoder import DecodeError, decode_event
from shadowswap_indexer.starknet.poller import StarknetBlockPoller

__all__ = ["EventClassifier", "DecodeError", "decode_event", "StarknetBlockPoller"]
