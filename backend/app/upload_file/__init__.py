"""File upload module.

Accepts one or many uploaded files, checks their extensions against an
allow-list and stores them under a date-partitioned directory tree:

    public/uploads/{category}/{YYYY}/{MM}/{DD}/{uuid}.{ext}

Stored files are served back under the static prefix, so the returned URL
for the path above is /static/uploads/{category}/{YYYY}/{MM}/{DD}/{uuid}.{ext}.
"""
