"""pipewright - build, analyse, gate and deploy a two-tier web application."""

__version__ = "0.1.0"
