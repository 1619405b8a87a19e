"""HTML rendering of a comment list.

The front end receives ready-to-insert markup. Replies are nested under
their parent; a reply whose parent is not in the list is shown at the top
level. Sibling order follows the order of the input list.
"""

import html
from collections import defaultdict
from datetime import datetime
from typing import Protocol

from .models import Comment


class CommentRenderer(Protocol):
    """Turns an ordered list of comments into markup."""

    def render(self, comments: list[Comment]) -> str: ...


class HtmlCommentRenderer:
    """Threaded ``<ol>`` renderer with escaped plain-text content."""

    DATE_FORMAT = "%B %d, %Y at %I:%M %p"

    def render(self, comments: list[Comment]) -> str:
        """Render comments as nested ordered lists ("" for no comments)."""
        if not comments:
            return ""

        ids = {comment.comment_id for comment in comments}
        children: dict[int, list[Comment]] = defaultdict(list)
        roots: list[Comment] = []
        for comment in comments:
            if comment.parent_id and comment.parent_id in ids:
                children[comment.parent_id].append(comment)
            else:
                roots.append(comment)

        return self._render_list(roots, children, css_class="comment-list")

    def _render_list(
        self,
        comments: list[Comment],
        children: dict[int, list[Comment]],
        css_class: str,
    ) -> str:
        items = "".join(self._render_item(c, children) for c in comments)
        return f'<ol class="{css_class}">{items}</ol>'

    def _render_item(self, comment: Comment, children: dict[int, list[Comment]]) -> str:
        replies = children.get(comment.comment_id, [])
        classes = "comment parent" if replies else "comment"
        nested = self._render_list(replies, children, "children") if replies else ""
        return (
            f'<li id="comment-{comment.comment_id}" class="{classes}">'
            f'<article id="div-comment-{comment.comment_id}" class="comment-body">'
            '<footer class="comment-meta">'
            '<div class="comment-author vcard">'
            f'<b class="fn">{html.escape(comment.author_name)}</b> '
            '<span class="says">says:</span></div>'
            '<div class="comment-metadata">'
            f'<time datetime="{self._local_time(comment).isoformat()}">'
            f"{html.escape(self._format_date(comment))}</time></div>"
            "</footer>"
            f'<div class="comment-content">{self._format_content(comment.content)}</div>'
            "</article>"
            f"{nested}</li>"
        )

    @staticmethod
    def _local_time(comment: Comment) -> datetime:
        """Site-local submission time; UTC when no local stamp was stored."""
        try:
            return datetime.fromisoformat(comment.created_at_local)
        except ValueError:
            return comment.created_at

    def _format_date(self, comment: Comment) -> str:
        return self._local_time(comment).strftime(self.DATE_FORMAT)

    @staticmethod
    def _format_content(content: str) -> str:
        """Escape content and wrap blank-line separated blocks in <p>."""
        paragraphs = [p for p in content.split("\n\n") if p.strip()]
        return "".join(
            "<p>" + html.escape(p.strip()).replace("\n", "<br />\n") + "</p>"
            for p in paragraphs
        )
