"""
Things MCP server package.

This package exposes MCP tools that drive the Things 3 task manager:
- things_add: create to-dos and projects
- things_get: read to-dos from lists, projects and areas
- things_show: navigate the Things UI
- things_update_json: bulk create/update through the Things JSON format

The core is the tool registry (`tools.ToolRegistry`) and the deadline-bound
dispatcher (`dispatcher.Dispatcher`); every tool call returns a
`CallToolResult`, whether it succeeded, failed, or timed out.
"""

__version__ = "1.0.0"
