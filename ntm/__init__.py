"""
ntm — Named Tmux Manager.

Runs a fleet of coding agents inside terminal-multiplexer panes. This
package carries the self-upgrade pipeline and its command-line surface.
"""

__version__ = "1.4.0"
