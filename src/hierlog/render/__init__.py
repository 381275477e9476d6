from hierlog.render.tree_renderer import render

__all__ = ["render"]
