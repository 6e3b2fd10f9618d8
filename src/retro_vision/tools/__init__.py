"""FastMCP sub-servers for console sessions, scene stages, and infra."""
