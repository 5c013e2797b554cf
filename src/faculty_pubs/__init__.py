"""Topic classification and reporting for faculty publication records."""
