"""FastAPI dependencies for the comment endpoints.

Provides dependency injection for:
- Submission pipeline
- Comment reader
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CommentReader, SubmissionPipeline


async def get_submission_pipeline(request: Request) -> SubmissionPipeline:
    """Get the submission pipeline from app state.

    Raises:
        HTTPException: 503 if the pipeline was not built at startup
    """
    app_state = request.app.state
    if not getattr(app_state, "submission_pipeline", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service unavailable",
        )
    return app_state.submission_pipeline


async def get_comment_reader(request: Request) -> CommentReader:
    """Get the comment reader from app state."""
    app_state = request.app.state
    if not getattr(app_state, "comment_reader", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service unavailable",
        )
    return app_state.comment_reader


# Type aliases for dependency injection
SubmissionPipelineDep = Annotated[SubmissionPipeline, Depends(get_submission_pipeline)]
CommentReaderDep = Annotated[CommentReader, Depends(get_comment_reader)]
