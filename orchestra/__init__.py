"""
Orchestra Package

Runtime registry and dispatcher for AI tools and agents:
- registry: tool and agent registries with dependency checks and statistics
- core: the registry orchestrator (agent selection, sessions, workflows)
- services: session bookkeeping and prompt templates
- tools: built-in tool handlers
- agents: bundled agent packages
"""
