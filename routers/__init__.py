"""HTTP routers: editing sessions, clothing catalog, gallery and upload history."""
