"""Website builder: a static site generator driven by structure files.

This package turns a directory of Markdown and HTML content into a static
website. Content is run through an ordered list of stages that share one
in-memory file tree, and the tree is only written to disk once every stage
has succeeded.

The main entry point is the CLI module, which provides commands for building
pages, copying assets, compiling Sass and cleaning the build directory.

Architecture:
- tree: In-memory FileTree of VirtualFiles with typed Metadata.
- content, structure, templates, minify: The page pipeline stages.
- assets: Verbatim copy and Sass compilation pipelines.
- build: Pipeline driver returning a BuildResult.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
