"""Terminal, subprocess, configuration, and event-loop runtime."""
