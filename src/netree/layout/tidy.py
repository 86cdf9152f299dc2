"""Tidy tree layout (Reingold-Tilford with Buchheim's linear-time walk).

Positions are first computed in separation units with the root at breadth
zero, then scaled into the configured size: breadth spans the width with half
a separation of margin around the outermost nodes, depth is spread evenly
over the height.
"""

from ..hierarchy import HierarchyNode
from .framework import LayoutAlgorithm


class _WalkNode:
    """Bookkeeping for one node during the layout walks."""

    __slots__ = ("node", "parent", "children", "ancestor", "apportion_anchor",
                 "prelim", "mod", "change", "shift", "thread", "index")

    def __init__(self, node: HierarchyNode | None, index: int):
        self.node = node
        self.parent: _WalkNode | None = None
        self.children: list[_WalkNode] = []
        self.ancestor = self
        self.apportion_anchor: _WalkNode | None = None
        self.prelim = 0.0
        self.mod = 0.0
        self.change = 0.0
        self.shift = 0.0
        self.thread: _WalkNode | None = None
        self.index = index


def _next_left(v: _WalkNode) -> _WalkNode | None:
    return v.children[0] if v.children else v.thread


def _next_right(v: _WalkNode) -> _WalkNode | None:
    return v.children[-1] if v.children else v.thread


def _move_subtree(wm: _WalkNode, wp: _WalkNode, shift: float) -> None:
    change = shift / (wp.index - wm.index)
    wp.change -= change
    wp.shift += shift
    wm.change += change
    wp.prelim += shift
    wp.mod += shift


def _execute_shifts(v: _WalkNode) -> None:
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def _next_ancestor(vim: _WalkNode, v: _WalkNode, ancestor: _WalkNode) -> _WalkNode:
    return vim.ancestor if vim.ancestor.parent is v.parent else ancestor


class TidyTreeLayout(LayoutAlgorithm):
    """Layered tidy tree: each node sits at its natural depth."""

    @property
    def mode_name(self) -> str:
        return "tree"

    def _position(self, root: HierarchyNode) -> None:
        walk_root = self._build_walk_tree(root)

        for v in self._post_order(walk_root):
            self._first_walk(v)
        walk_root.parent.mod = -walk_root.prelim

        for v in self._pre_order(walk_root):
            v.node.x = v.prelim + v.parent.mod
            v.mod += v.parent.mod

        self._fit(root)

    def _build_walk_tree(self, root: HierarchyNode) -> _WalkNode:
        walk_root = _WalkNode(root, 0)
        stack = [walk_root]
        while stack:
            v = stack.pop()
            for i, child in enumerate(v.node.children):
                w = _WalkNode(child, i)
                w.parent = v
                v.children.append(w)
                stack.append(w)

        # sentinel parent so the root is handled like any other first child
        sentinel = _WalkNode(None, 0)
        sentinel.children = [walk_root]
        walk_root.parent = sentinel
        return walk_root

    @staticmethod
    def _pre_order(v: _WalkNode):
        stack = [v]
        while stack:
            v = stack.pop()
            yield v
            stack.extend(reversed(v.children))

    @staticmethod
    def _post_order(v: _WalkNode):
        order = []
        stack = [v]
        while stack:
            v = stack.pop()
            order.append(v)
            stack.extend(v.children)
        return reversed(order)

    def _first_walk(self, v: _WalkNode) -> None:
        siblings = v.parent.children
        w = siblings[v.index - 1] if v.index else None
        if v.children:
            _execute_shifts(v)
            midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
            if w is not None:
                v.prelim = w.prelim + self.separation(v.node, w.node)
                v.mod = v.prelim - midpoint
            else:
                v.prelim = midpoint
        elif w is not None:
            v.prelim = w.prelim + self.separation(v.node, w.node)
        v.parent.apportion_anchor = self._apportion(v, w, v.parent.apportion_anchor or siblings[0])

    def _apportion(self, v: _WalkNode, w: _WalkNode | None, ancestor: _WalkNode) -> _WalkNode:
        if w is None:
            return ancestor

        vip = vop = v
        vim = w
        vom = vip.parent.children[0]
        sip = vip.mod
        sop = vop.mod
        sim = vim.mod
        som = vom.mod

        while True:
            vim = _next_right(vim)
            vip = _next_left(vip)
            if vim is None or vip is None:
                break
            vom = _next_left(vom)
            vop = _next_right(vop)
            vop.ancestor = v
            shift = vim.prelim + sim - vip.prelim - sip + self.separation(vim.node, vip.node)
            if shift > 0:
                _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
                sip += shift
                sop += shift
            sim += vim.mod
            sip += vip.mod
            som += vom.mod
            sop += vop.mod

        if vim is not None and _next_right(vop) is None:
            vop.thread = vim
            vop.mod += sim - sop
        if vip is not None and _next_left(vom) is None:
            vom.thread = vip
            vom.mod += sip - som
            ancestor = v
        return ancestor

    def _fit(self, root: HierarchyNode) -> None:
        width, height = self.size
        left = right = bottom = root
        for node in root.each_before():
            if node.x < left.x:
                left = node
            if node.x > right.x:
                right = node
            if node.depth > bottom.depth:
                bottom = node

        s = 1 if left is right else self.separation(left, right) / 2
        tx = s - left.x
        kx = width / (right.x + s + tx)
        ky = height / (bottom.depth or 1)
        for node in root.each_before():
            node.x = (node.x + tx) * kx
            node.y = node.depth * ky
