"""Unit tests for render/tree_renderer.py - pruning and diagram layout."""

from conftest import attach
from hierlog.appenders.base import ConsoleAppender
from hierlog.appenders.layouts import PatternLayout
from hierlog.core.levels import Level
from hierlog.render.tree_renderer import render


def set_level(tree, ctx, name, level):
    tree.get_or_create(name).state(ctx).level = level


class TestPruning:
    def test_uninteresting_loggers_do_not_appear(self, tree, ctx):
        # Arrange
        tree.get_or_create("quiet.deep.leaf")
        set_level(tree, ctx, "loud", Level.DEBUG)
        tree.get_or_create("plain").state(ctx)

        # Act
        output = render(tree.root, ctx, tree)

        # Assert
        assert output == "ROOT\n`-loud, DEBUG\n"
        assert "quiet" not in output
        assert "plain" not in output

    def test_interesting_descendant_keeps_path(self, tree, ctx):
        set_level(tree, ctx, "a.b.c", Level.ERROR)

        output = render(tree.root, ctx, tree)

        assert output == "ROOT\n`-a\n  `-b\n    `-c, ERROR\n"

    def test_render_root_always_shown(self, tree, ctx):
        node = tree.get_or_create("nothing.here")

        assert render(node, ctx, tree) == "nothing.here\n"

    def test_other_contexts_are_invisible(self, tree, ctx):
        set_level(tree, tree.new_context(), "elsewhere", Level.DEBUG)

        assert render(tree.root, ctx, tree) == "ROOT\n"


class TestLayout:
    def test_branches_and_continuations(self, tree, ctx):
        # Arrange
        set_level(tree, ctx, "", Level.INFO)
        set_level(tree, ctx, "app.db", Level.DEBUG)
        tree.get_or_create("app.web").state(ctx).additive = False
        set_level(tree, ctx, "zeta", Level.WARN)

        # Act
        output = render(tree.root, ctx, tree)

        # Assert
        assert output.splitlines() == [
            "ROOT, INFO",
            "+-app",
            "| +-db, DEBUG",
            "| `-web (non-additive)",
            "`-zeta, WARN",
        ]

    def test_appenders_listed_under_node(self, tree, ctx):
        # Arrange
        console = ConsoleAppender(layout=PatternLayout("%m%n"), stream="stderr")
        attach(tree, ctx, "app.web", console, additive=False)
        set_level(tree, ctx, "zeta", Level.WARN)

        # Act
        output = render(tree.root, ctx, tree)

        # Assert
        assert output.splitlines() == [
            "ROOT",
            "+-app",
            "| `-web (non-additive)",
            "|       [1] ConsoleAppender",
            '|           layout: PatternLayout conversion_pattern="%m%n"',
            '|           stream: "stderr"',
            "|           immediate_flush: False",
            "`-zeta, WARN",
        ]

    def test_root_appenders(self, tree, ctx):
        attach(tree, ctx, "", ConsoleAppender(layout=PatternLayout("%m"), immediate_flush=True))

        output = render(tree.root, ctx, tree)

        assert output.splitlines() == [
            "ROOT",
            "    [1] ConsoleAppender",
            '        layout: PatternLayout conversion_pattern="%m"',
            '        stream: "stdout"',
            "        immediate_flush: True",
        ]

    def test_subtree_render_uses_full_name(self, tree, ctx):
        set_level(tree, ctx, "app.db", Level.DEBUG)

        output = render(tree.get_or_create("app"), ctx, tree)

        assert output == "app\n`-db, DEBUG\n"
