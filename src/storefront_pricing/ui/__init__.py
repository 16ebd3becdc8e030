"""UI subpackage - streamlit desk tool."""
