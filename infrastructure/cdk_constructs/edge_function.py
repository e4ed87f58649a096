"""CloudFront Function that rewrites extensionless URLs to .html objects."""

from pathlib import Path

from aws_cdk import aws_cloudfront as cloudfront
from constructs import Construct

FUNCTION_SOURCE = Path(__file__).parent.parent / "functions" / "static_urls.js"


def rewrite_path(path: str) -> str:
  """Apply the viewer-request rewrite to a request path.

  Mirrors ``static_urls.js``: a path whose last segment has no extension and
  which does not end in ``/`` gets ``.html`` appended. Every other path is
  returned unchanged, so rewriting twice is the same as rewriting once.
  """
  if path.endswith("/"):
    return path
  last_segment = path.rsplit("/", 1)[-1]
  if "." in last_segment:
    return path
  return f"{path}.html"


class EdgeRewriteFunction(Construct):
  """Viewer-request CloudFront Function for static URL rewriting."""

  def __init__(self, scope: Construct, id: str) -> None:
    super().__init__(scope, id)

    self.function = cloudfront.Function(
      self,
      "Function",
      code=cloudfront.FunctionCode.from_file(file_path=str(FUNCTION_SOURCE)),
      comment="Rewrite static URLs to .html so they get forwarded to the origin",
      runtime=cloudfront.FunctionRuntime.JS_2_0,
    )

  @property
  def association(self) -> cloudfront.FunctionAssociation:
    """Association for a distribution behavior's ``function_associations``."""
    return cloudfront.FunctionAssociation(
      function=self.function,
      event_type=cloudfront.FunctionEventType.VIEWER_REQUEST,
    )
