"""HTTP primitives: immutable Request, Response, and Redirect."""

from redirect_back.http.request import Request, parse_cookies
from redirect_back.http.response import Redirect, Response, SetCookie

__all__ = ["Redirect", "Request", "Response", "SetCookie", "parse_cookies"]
