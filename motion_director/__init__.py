"""Motion Director: a tool-using agent that authors Remotion projects"""

__version__ = "0.1.0"
