"""Tool execution pipeline.

- **prompt**: Channel instructions (Jinja2 templates)
- **simulation**: Local output heuristic for execution simulation
- **orchestrator**: Channels, generations, debounce and retry/backoff
"""
