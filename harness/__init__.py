"""Client-side load generator and latency reducer for replicated resources."""
