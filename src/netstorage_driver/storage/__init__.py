"""Storage layer: NetStorage protocol client, streams, staged writes and driver contracts."""
