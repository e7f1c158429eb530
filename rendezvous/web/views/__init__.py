from ...barrier.waiter import LINE_ENDING


def plain_error(exception_class, message, **kw):
    """Build a pyramid HTTP exception whose body is the single line of text a command-line client expects"""
    return exception_class(text=message+LINE_ENDING, content_type="text/plain", **kw)
