"""Shared typography classes.

The editing surface and the public page must both derive from
PROSE_CLASSNAME.
"""

PROSE_CLASSNAME = " ".join(
    [
        "prose",
        "prose-sm",
        "sm:prose-base",
        "lg:prose-lg",
        "xl:prose-2xl",
        "prose-zinc",
        "dark:prose-invert",
    ]
)

EDITOR_CLASSNAME = " ".join(
    [
        PROSE_CLASSNAME,
        "border",
        "border-gray-200",
        "dark:border-gray-700",
        "rounded-lg",
        "p-3",
        "lg:p-4",
        "xl:p-5",
        "focus:ring-2",
        "focus:ring-blue-300",
        "tiptap-editor",
    ]
)

PUBLIC_CONTENT_WRAPPER_CLASSNAME = PROSE_CLASSNAME
