"""StitchOps - garment production workflow service"""
