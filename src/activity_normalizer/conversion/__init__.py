"""Raw record -> Activity conversion: field mapping, classification and scoring."""
